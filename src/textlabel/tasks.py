from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .errors import InvalidRequest
from .schema import Cardinality, FewShotExample, Mode, Task, TaskSpec


TASKS: Mapping[Task, TaskSpec] = MappingProxyType(
    {
        Task.SENTIMENT: TaskSpec(
            display_name="Sentiment Analysis",
            labels=("positive", "neutral", "negative", "mixed"),
            cardinality=Cardinality.SINGLE,
            fallback_label="neutral",
            examples=(
                FewShotExample(
                    text="This update is fantastic, everything feels faster.",
                    label=("positive",),
                    confidence=0.92,
                ),
                FewShotExample(
                    text="It works fine, but nothing really stands out.",
                    label=("neutral",),
                    confidence=0.78,
                ),
            ),
        ),
        Task.INTENT: TaskSpec(
            display_name="Intent Classification",
            labels=(
                "question",
                "request",
                "complaint",
                "instruction",
                "feedback",
                "informational",
                "other",
            ),
            cardinality=Cardinality.MULTI,
            examples=(
                FewShotExample(
                    text="Can you help me reset my password?",
                    label=("question",),
                    confidence=0.86,
                ),
                FewShotExample(
                    text="The app crashes whenever I try to submit the form.",
                    label=("complaint",),
                    confidence=0.91,
                ),
            ),
        ),
        Task.USER_SIGNAL: TaskSpec(
            display_name="User Signal Classification",
            labels=(
                "implicit_expectation",
                "frustration_signal",
                "blocked_progress",
                "workaround_seeking",
            ),
            cardinality=Cardinality.MULTI,
            examples=(
                FewShotExample(
                    text="I thought this feature would work better than it does.",
                    label=("implicit_expectation",),
                    confidence=0.83,
                ),
                FewShotExample(
                    text="This is getting really annoying. Is there any workaround?",
                    label=("frustration_signal", "workaround_seeking"),
                    confidence=0.79,
                ),
                FewShotExample(
                    text="I can't get past the verification screen.",
                    label=("blocked_progress",),
                    confidence=0.88,
                ),
            ),
        ),
    }
)

_SEPARATORS = re.compile(r"[\s_-]+")


def normalize_task_name(name: str) -> str:
    """Lower-case a task name and collapse ``-``, ``_`` and whitespace to one space."""
    return _SEPARATORS.sub(" ", name.strip().lower())


def normalize_mode_name(name: str) -> str:
    return _SEPARATORS.sub("-", name.strip().lower())


def resolve_task(name: str | Task) -> Optional[Task]:
    """Return the Task for ``name`` or None when it is not one of the known tasks."""
    if isinstance(name, Task):
        return name
    try:
        return Task(normalize_task_name(name))
    except ValueError:
        return None


def resolve_mode(name: str | Mode) -> Optional[Mode]:
    if isinstance(name, Mode):
        return name
    try:
        return Mode(normalize_mode_name(name))
    except ValueError:
        return None


def parse_task(name: str | Task) -> Task:
    task = resolve_task(name)
    if task is None:
        known = ", ".join(t.value for t in Task)
        raise InvalidRequest(f"Unknown task '{name}'. Expected one of: {known}")
    return task


def parse_mode(name: str | Mode) -> Mode:
    mode = resolve_mode(name)
    if mode is None:
        known = ", ".join(m.value for m in Mode)
        raise InvalidRequest(f"Unknown mode '{name}'. Expected one of: {known}")
    return mode


def allowed_labels(task: Optional[Task]) -> Tuple[str, ...]:
    if task is None:
        return ()
    return TASKS[task].labels


def cardinality(task: Optional[Task]) -> Cardinality:
    # Unrecognized tasks fall through to multi-label handling
    if task is None:
        return Cardinality.MULTI
    return TASKS[task].cardinality
