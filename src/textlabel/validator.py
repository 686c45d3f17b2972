from __future__ import annotations

import json
import logging
from typing import Any, List

from pydantic import ValidationError

from .errors import MalformedResponse
from .schema import Cardinality, LabelResult, LLMResponse, Task
from .tasks import TASKS, allowed_labels, cardinality, normalize_task_name, resolve_task

logger = logging.getLogger(__name__)

REVIEW_THRESHOLD = 0.70


def strip_code_fences(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        content = content.strip("`\n ")
        if content.lower().startswith("json"):
            content = content[4:].lstrip()
    return content


def decode_response(raw: str) -> LLMResponse:
    """Parse completion text into an :class:`LLMResponse` or raise MalformedResponse."""
    content = strip_code_fences(raw)
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise MalformedResponse(
            f"Model returned non-JSON response: {content[:120]}... ({e})"
        ) from e
    if not isinstance(data, dict):
        raise MalformedResponse(
            f"Model returned JSON {type(data).__name__}, expected an object"
        )
    try:
        return LLMResponse(**data)
    except ValidationError as e:
        raise MalformedResponse(f"Model response has invalid fields: {e}") from e


def to_list(val: Any) -> List[Any]:
    if val is None:
        return []
    if isinstance(val, (list, tuple)):
        return list(val)
    return [val]


def sanitize(task: str | Task, parsed: LLMResponse) -> LabelResult:
    """Enforce the task allow-list and flag rules on a decoded response.

    Labels outside the allow-list are dropped and force both flags on. Single
    label tasks collapse to the first valid label, or the task's fallback.
    """
    resolved = resolve_task(task)
    allowed = allowed_labels(resolved)

    labels = to_list(parsed.label)
    valid = [lbl for lbl in labels if isinstance(lbl, str) and lbl in allowed]

    ambiguity = bool(parsed.ambiguity_detected)
    review = bool(parsed.review_recommended)
    if len(valid) < len(labels):
        logger.info(
            "Dropped labels outside the allow-list: %s",
            [lbl for lbl in labels if lbl not in valid],
        )
        ambiguity = True
        review = True

    label: str | List[str]
    if cardinality(resolved) is Cardinality.SINGLE:
        label = valid[0] if valid else TASKS[resolved].fallback_label
    else:
        label = valid

    confidence = min(1.0, max(0.0, parsed.confidence or 0.0))
    if confidence < REVIEW_THRESHOLD or ambiguity:
        review = True

    task_name = resolved.value if resolved else normalize_task_name(str(task))
    return LabelResult(
        task=task_name,
        label=label,
        confidence=confidence,
        ambiguity_detected=ambiguity,
        review_recommended=review,
    )


def validate_response(task: str | Task, raw: str) -> LabelResult:
    return sanitize(task, decode_response(raw))
