import json
from textwrap import dedent
from typing import List, Optional

from .schema import Cardinality, FewShotExample, Mode, Task
from .tasks import TASKS, normalize_mode_name, normalize_task_name, resolve_mode, resolve_task

USER_INSTRUCTION = "Please label the text and return ONLY valid JSON."

HEADER = dedent(
    """
    You are an AI text labeling engine used in a professional data labeling application.
    You must strictly follow the task, labeling mode, allowed labels, and rules provided.
    You must output ONLY valid JSON. Do not include explanations, markdown, or extra text.
    """
).strip()

CARDINALITY_TEXT = {
    Cardinality.SINGLE: ("single label only", "Assign EXACTLY ONE label."),
    Cardinality.MULTI: ("multi-label allowed", "Assign ONE OR MORE labels only if clearly supported."),
}

FLAG_RULES = dedent(
    """
    - Do NOT invent or modify labels.
    - Confidence must be a number between 0.0 and 1.0.
    - Set ambiguity_detected = true when:
        • Multiple labels are equally plausible, OR
        • The classification cannot be confidently inferred, OR
        • The text contains mixed or conflicting signals.
    - Set review_recommended = true if:
        • confidence < 0.70, OR
        • ambiguity_detected = true
    """
).strip()


def _other_tasks(task: Optional[Task]) -> List[Task]:
    return [t for t in Task if t is not task]


def render_example(n: int, example: FewShotExample) -> str:
    return "\n".join(
        [
            f"Example {n}:",
            f'Text: "{example.text}"',
            "Output:",
            "{",
            f'  "label": {json.dumps(list(example.label))},',
            f'  "confidence": {example.confidence},',
            f'  "ambiguity_detected": {json.dumps(example.ambiguity_detected)},',
            f'  "review_recommended": {json.dumps(example.review_recommended)}',
            "}",
        ]
    )


def few_shot_block(task: Task) -> str:
    """Worked examples for ``task``, one ``Example N:`` block each."""
    spec = TASKS[task]
    lines = [f'## If task = "{spec.display_name}" and labeling_mode = "few-shot"']
    lines += [render_example(i, ex) for i, ex in enumerate(spec.examples, start=1)]
    return "\n".join(lines)


def build_system_prompt(task: str, mode: str, text: str) -> str:
    """Build the system instruction for one labeling request.

    ``task`` and ``mode`` are matched case-insensitively. An unrecognized task
    is not an error here: the prompt is produced with an empty allow-list and
    no examples. Callers that need to reject unknown names do so with
    :func:`textlabel.tasks.parse_task` before calling this.
    """
    resolved_task = resolve_task(task)
    resolved_mode = resolve_mode(mode)
    task_name = resolved_task.value if resolved_task else normalize_task_name(str(task))
    mode_name = resolved_mode.value if resolved_mode else normalize_mode_name(str(mode))

    if resolved_task is not None:
        spec = TASKS[resolved_task]
        labels = list(spec.labels)
        label_type, label_instructions = CARDINALITY_TEXT[spec.cardinality]
        target = spec.display_name
    else:
        labels = []
        label_type, label_instructions = "", ""
        target = "this task"

    others = _other_tasks(resolved_task)
    other_names = ", ".join(TASKS[t].display_name for t in others)

    sections = [
        HEADER,
        f"Task: {task_name}",
        f"Labeling Mode: {mode_name}",
        "",
        "IMPORTANT: For this task, you MUST use ONLY the following allowed labels. "
        f"Do NOT use labels from other tasks ({other_names}, or any other classification system).",
        "",
        f"Allowed Labels ({label_type}):",
        *[f"- {label}" for label in labels],
        "",
        "Text to Label:",
        text,
        f"## If {mode_name} = zero-shot, IGNORE all examples and rely only on the rules.",
    ]

    if resolved_mode is Mode.FEW_SHOT and resolved_task is not None:
        sections.append(few_shot_block(resolved_task))

    sections += [
        "## Labeling rules",
        "Rules:",
        f"- Use ONLY labels from the allowed label list above. {label_instructions}".rstrip(),
        f"- Do NOT use labels from other tasks ({other_names}) for {target}.",
        FLAG_RULES,
        "## Output format (json)",
        "{",
        f'  "task": "{task_name}",',
        '  "label": ["<allowed label(s)>"],',
        '  "confidence": <number between 0 and 1>,',
        '  "ambiguity_detected": true | false,',
        '  "review_recommended": true | false',
        "}",
    ]
    return "\n".join(sections)
