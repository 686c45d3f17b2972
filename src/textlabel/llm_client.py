from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional
import hashlib
import json
import logging
import httpx
from tenacity import Retrying, stop_after_attempt, wait_exponential, retry_if_exception
from tenacity.wait import wait_base

from .config import ENV
from .errors import EmptyResponse, ServiceUnavailable, UpstreamFailure

logger = logging.getLogger(__name__)

# Optional request fields a model may reject; dropped and re-sent once.
OPTIONAL_PARAMS = {"temperature", "top_p", "seed", "response_format"}
UNSUPPORTED_CODES = {"unsupported_value", "unsupported_parameter"}


@dataclass
class LLMResult:
    content: str
    usage: dict


def prompt_hash(system: str, user: str, model: str) -> str:
    """Short fingerprint of a labeling prompt, used to correlate log lines."""
    m = hashlib.sha256()
    for part in (system, user, model):
        m.update(part.encode("utf-8"))
    return m.hexdigest()[:16]


def _is_transient(e: BaseException) -> bool:
    # Rate limits, server errors and timeouts; a 4xx is the request's fault
    if isinstance(e, httpx.TimeoutException):
        return True
    if isinstance(e, httpx.HTTPStatusError):
        code = e.response.status_code
        return code == 429 or code >= 500
    return False


def _unsupported_param(detail: Dict[str, Any]) -> Optional[str]:
    """Name of the optional request field the model rejected, if any."""
    err = detail.get("error")
    if not isinstance(err, dict) or err.get("code") not in UNSUPPORTED_CODES:
        return None
    param = err.get("param")
    return param if param in OPTIONAL_PARAMS else None


def _error_detail(resp: httpx.Response) -> Dict[str, Any]:
    try:
        detail = resp.json()
    except ValueError:
        detail = {"raw": resp.text[:2000]}
    return detail if isinstance(detail, dict) else {"raw": detail}


def _completion_content(data: Any) -> str:
    """Pull ``choices[0].message.content`` out of a chat completion body."""
    if not isinstance(data, dict):
        raise UpstreamFailure(
            f"Unexpected completion body: expected an object, got {type(data).__name__}"
        )
    choices = data.get("choices") or [{}]
    first = choices[0] if isinstance(choices, list) else None
    if not isinstance(first, dict):
        raise UpstreamFailure("Unexpected completion body: 'choices' is not a list of objects")
    message = first.get("message") or {}
    if not isinstance(message, dict):
        raise UpstreamFailure("Unexpected completion body: 'message' is not an object")
    content = message.get("content")
    if content is None:
        raise EmptyResponse("No response from OpenAI")
    if not isinstance(content, str):
        raise UpstreamFailure(
            f"Unexpected completion body: 'content' is {type(content).__name__}, not text"
        )
    if not content.strip():
        raise EmptyResponse("No response from OpenAI")
    return content


class OpenAIClient:
    """Minimal client for an OpenAI-compatible ``/chat/completions`` endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
        retry_wait: wait_base | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key or ENV.openai_key
        self.base_url = base_url or ENV.openai_base
        self.model = model or ENV.model
        self.timeout = timeout or ENV.timeout
        self.max_attempts = max(1, max_attempts or ENV.max_attempts)
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=30)
        self.transport = transport
        if not self.api_key:
            raise ServiceUnavailable("OpenAI API key not configured")

    def _post(self, client: httpx.Client, url: str, headers: dict, body: Dict[str, Any]) -> Any:
        resp = client.post(url, headers=headers, json=body)
        if resp.status_code < 400:
            return resp.json()

        detail = _error_detail(resp)
        # e.g. temperature on reasoning models: send once more without it
        param = _unsupported_param(detail) if resp.status_code == 400 else None
        if param is not None:
            logger.warning("Model %s rejected '%s'; retrying without it", self.model, param)
            trimmed = {k: v for k, v in body.items() if k != param}
            resp = client.post(url, headers=headers, json=trimmed)
            if resp.status_code < 400:
                return resp.json()
            detail = _error_detail(resp)

        raise httpx.HTTPStatusError(
            f"OpenAI error {resp.status_code} on /chat/completions: {json.dumps(detail)}",
            request=resp.request,
            response=resp,
        )

    def chat(
        self,
        system: str,
        user: str,
        temperature: float = 0.3,
        top_p: float = 1.0,
        seed: int | None = None,
        json_mode: bool = True,
    ) -> LLMResult:
        url = f"{self.base_url.rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": temperature,
            "top_p": top_p,
        }
        if seed is not None:
            body["seed"] = seed
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        retrying = Retrying(
            wait=self.retry_wait,
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                for attempt in retrying:
                    with attempt:
                        data = self._post(client, url, headers, body)
        except httpx.HTTPStatusError as e:
            raise UpstreamFailure(str(e)) from e
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"Request to {url} failed: {e!r}") from e
        except ValueError as e:
            raise UpstreamFailure(f"Invalid JSON body from {url}: {e}") from e

        content = _completion_content(data)
        usage = data.get("usage")
        return LLMResult(content=content, usage=usage if isinstance(usage, dict) else {})
