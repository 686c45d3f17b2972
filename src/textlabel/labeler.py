from __future__ import annotations

import logging
from typing import Optional, Protocol

from .errors import InvalidRequest
from .llm_client import LLMResult, OpenAIClient, prompt_hash
from .prompts import USER_INSTRUCTION, build_system_prompt
from .schema import LabelResult, ModelConfig
from .tasks import parse_mode, parse_task
from .validator import validate_response

logger = logging.getLogger(__name__)


class ChatClient(Protocol):
    model: str

    def chat(
        self,
        system: str,
        user: str,
        temperature: float = ...,
        top_p: float = ...,
        seed: Optional[int] = ...,
        json_mode: bool = ...,
    ) -> LLMResult: ...


def require_fields(task: Optional[str], mode: Optional[str], text: Optional[str]) -> None:
    missing = [
        name
        for name, value in (("task", task), ("mode", mode), ("text", text))
        if value is None or not str(value).strip()
    ]
    if missing:
        raise InvalidRequest(f"Missing required fields: {', '.join(missing)}")


class Labeler:
    """Runs one labeling request: prompt, completion, validation."""

    def __init__(self, model_cfg: ModelConfig | None = None, client: ChatClient | None = None):
        self.model_cfg = model_cfg or ModelConfig()
        self._client = client

    @property
    def client(self) -> ChatClient:
        # Built on first use so request validation runs before the key check
        if self._client is None:
            self._client = OpenAIClient(model=self.model_cfg.model)
        return self._client

    def preview(self, task: Optional[str], mode: Optional[str], text: Optional[str]) -> str:
        require_fields(task, mode, text)
        return build_system_prompt(parse_task(task).value, parse_mode(mode).value, text)

    def label(self, task: Optional[str], mode: Optional[str], text: Optional[str]) -> LabelResult:
        require_fields(task, mode, text)
        resolved_task = parse_task(task)
        resolved_mode = parse_mode(mode)

        system = build_system_prompt(resolved_task.value, resolved_mode.value, text)
        ph = prompt_hash(system, USER_INSTRUCTION, self.model_cfg.model)
        logger.info(
            "Labeling request task=%s mode=%s chars=%d prompt=%s",
            resolved_task.value,
            resolved_mode.value,
            len(text),
            ph,
        )

        res = self.client.chat(
            system=system,
            user=USER_INSTRUCTION,
            temperature=self.model_cfg.temperature,
            top_p=self.model_cfg.top_p,
            seed=self.model_cfg.seed,
            json_mode=True,
        )
        logger.debug("Raw completion for prompt %s: %s", ph, res.content)

        result = validate_response(resolved_task, res.content)
        logger.info(
            "Labeled prompt=%s label=%s confidence=%.2f ambiguity=%s review=%s usage=%s",
            ph,
            result.label,
            result.confidence,
            result.ambiguity_detected,
            result.review_recommended,
            res.usage,
        )
        return result
