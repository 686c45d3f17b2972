import pytest

from textlabel.errors import InvalidRequest
from textlabel.schema import Cardinality, Mode, Task
from textlabel.tasks import (
    TASKS,
    allowed_labels,
    cardinality,
    parse_mode,
    parse_task,
    resolve_task,
)


@pytest.mark.parametrize(
    "name",
    ["Sentiment Analysis", "sentiment analysis", "sentiment-analysis", "SENTIMENT_ANALYSIS", "  sentiment   analysis "],
)
def test_task_names_are_case_and_separator_insensitive(name):
    assert parse_task(name) is Task.SENTIMENT


@pytest.mark.parametrize("name", ["Zero-shot", "zero shot", "ZERO_SHOT"])
def test_mode_names(name):
    assert parse_mode(name) is Mode.ZERO_SHOT
    assert parse_mode("Few-shot") is Mode.FEW_SHOT


def test_unknown_names_fail_fast():
    with pytest.raises(InvalidRequest, match="Unknown task"):
        parse_task("topic classification")
    with pytest.raises(InvalidRequest, match="Unknown mode"):
        parse_mode("one-shot")
    assert resolve_task("topic classification") is None


def test_label_sets_do_not_overlap():
    sets = [set(spec.labels) for spec in TASKS.values()]
    for i, a in enumerate(sets):
        for b in sets[i + 1:]:
            assert not a & b


def test_registry_shape():
    assert cardinality(Task.SENTIMENT) is Cardinality.SINGLE
    assert cardinality(Task.INTENT) is Cardinality.MULTI
    assert cardinality(None) is Cardinality.MULTI
    assert allowed_labels(None) == ()
    assert TASKS[Task.SENTIMENT].fallback_label == "neutral"
    assert [len(TASKS[t].examples) for t in Task] == [2, 2, 3]


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        TASKS[Task.SENTIMENT] = TASKS[Task.INTENT]
