from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from requests import Response, Session
from requests.exceptions import RequestException

from .constants import API_ENDPOINT, DEFAULT_REQUEST_TIMEOUT
from .errors import InferenceError
from .models import MediaPayload, RunConfig

logger = logging.getLogger(__name__)


def build_request_body(prompt: str, payload: MediaPayload, config: RunConfig) -> Dict[str, Any]:
    """Single-turn chat request carrying the prompt and one media part."""
    return {
        "model": config.model,
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    payload.to_content_part(),
                ],
            }
        ],
        "max_tokens": config.max_tokens,
        "temperature": config.temperature,
    }


def extract_completion_text(data: object) -> str:
    try:
        content = data["choices"][0]["message"]["content"]  # type: ignore[index]
    except (KeyError, IndexError, TypeError) as exc:
        raise InferenceError("Invalid API response format") from exc
    if not isinstance(content, str) or not content:
        raise InferenceError("Invalid API response format")
    return content


class InferenceClient:
    """Performs one chat-completions POST per call; retries are left to the caller."""

    def __init__(
        self,
        endpoint: str = API_ENDPOINT,
        *,
        timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT,
        session: Optional[Session] = None,
    ):
        if not endpoint:
            raise ValueError("Inference endpoint URL is required.")
        self.endpoint = endpoint
        self.timeout = timeout
        self._session = session or requests.Session()

    def complete(self, prompt: str, payload: MediaPayload, config: RunConfig) -> str:
        body = build_request_body(prompt, payload, config)
        logger.debug("Sending %s request for %s media to %s.", config.model, payload.kind.value, self.endpoint)
        data = self._post(body, config.api_key)
        return extract_completion_text(data)

    def close(self) -> None:
        self._session.close()

    def _post(self, payload: dict, api_key: str) -> dict:
        try:
            response: Response = self._session.post(
                self.endpoint, json=payload, headers=self._headers(api_key), timeout=self.timeout
            )
        except RequestException as exc:
            raise InferenceError(f"Failed to reach inference API: {exc}") from exc

        status = response.status_code
        if not 200 <= status < 300:
            raise InferenceError(
                f"HTTP error {status}: {self._clip_text(response.text)}",
                status_code=status,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise InferenceError(
                f"Invalid JSON response: {self._clip_text(response.text)}",
                status_code=status,
            ) from exc

        provider_error = self._provider_error_payload(data)
        if provider_error:
            message, code = provider_error
            raise InferenceError(message, status_code=code)
        return data

    @staticmethod
    def _headers(api_key: str) -> dict:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    @staticmethod
    def _clip_text(text: str, limit: int = 800) -> str:
        snippet = (text or "").strip()
        if not snippet:
            return "<empty response>"
        if len(snippet) <= limit:
            return snippet
        return f"{snippet[:limit]}…"

    @staticmethod
    def _provider_error_payload(payload: object) -> Optional[tuple[str, Optional[int]]]:
        # Some gateways answer 200 with an {"error": {...}} body.
        if not isinstance(payload, dict):
            return None
        error_block = payload.get("error")
        if not isinstance(error_block, dict):
            return None
        message = str(error_block.get("message") or "Unknown API error")
        code_raw = error_block.get("code")
        code: Optional[int] = None
        if isinstance(code_raw, int):
            code = code_raw
        else:
            try:
                code = int(str(code_raw))
            except (TypeError, ValueError):
                code = None
        if code is not None:
            return f"API error {code}: {message}", code
        return f"API error: {message}", None
