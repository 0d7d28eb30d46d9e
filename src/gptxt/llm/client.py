"""Thin completion client used to synthesize candidate scripts."""

from __future__ import annotations

import json
import logging
from urllib import request
from urllib.error import HTTPError, URLError

DEFAULT_MODEL = "gpt-3.5-turbo-instruct"
DEFAULT_API_URL = "https://api.openai.com/v1/completions"
LOGGER = logging.getLogger(__name__)


class CompletionError(Exception):
    """Raised when the completion service cannot produce a usable response."""


class CompletionClient:
    """Small HTTP client for text-completion model calls."""

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.api_url = api_url
        self.timeout = timeout

    def complete(self, prompt: str, *, temperature: float, max_tokens: int) -> list[str]:
        """Return the text of every completion choice, in response order."""
        payload = self._build_payload(prompt, temperature=temperature, max_tokens=max_tokens)
        body = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        LOGGER.debug(
            "completion_request_prepared",
            extra={
                "api_url": self.api_url,
                "model": self.model,
                "payload_bytes": len(body),
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )

        req = request.Request(self.api_url, data=body, headers=headers, method="POST")
        try:
            with request.urlopen(req, timeout=self.timeout) as resp:  # noqa: S310
                raw_response = json.loads(resp.read().decode("utf-8"))
        except HTTPError as exc:
            body_excerpt = self._read_error_body_excerpt(exc)
            LOGGER.error(
                "completion_request_http_error",
                extra={
                    "api_url": self.api_url,
                    "model": self.model,
                    "http_status": exc.code,
                    "reason": exc.reason,
                    "response_excerpt": body_excerpt,
                },
            )
            details = f"Completion request failed with HTTP {exc.code}: {exc.reason}"
            if body_excerpt:
                details = f"{details}. Response body: {body_excerpt}"
            raise CompletionError(details) from exc
        except URLError as exc:
            LOGGER.error(
                "completion_request_transport_error",
                extra={"api_url": self.api_url, "model": self.model, "reason": str(exc.reason)},
            )
            raise CompletionError(f"Completion request transport error: {exc.reason}") from exc
        except TimeoutError as exc:
            LOGGER.error(
                "completion_request_timeout",
                extra={
                    "api_url": self.api_url,
                    "model": self.model,
                    "timeout_seconds": self.timeout,
                },
            )
            raise CompletionError(
                f"Completion request timed out after {self.timeout:.1f}s"
            ) from exc
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            LOGGER.error(
                "completion_response_parse_error",
                extra={"api_url": self.api_url, "model": self.model, "error": str(exc)},
            )
            raise CompletionError(f"Completion response parsing error: {exc}") from exc

        return self._extract_choice_texts(raw_response)

    def _build_payload(
        self, prompt: str, *, temperature: float, max_tokens: int
    ) -> dict[str, object]:
        return {
            "model": self.model,
            "prompt": prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

    @staticmethod
    def _extract_choice_texts(payload: object) -> list[str]:
        if not isinstance(payload, dict):
            raise CompletionError("Completion response parsing error: expected top-level object")

        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            raise CompletionError(f"Completion service error: {error['message']}")

        choices = payload.get("choices")
        if not isinstance(choices, list):
            raise CompletionError("Completion response contained no choices")

        texts = [
            choice["text"]
            for choice in choices
            if isinstance(choice, dict) and isinstance(choice.get("text"), str)
        ]
        if not texts:
            raise CompletionError("Completion response contained no choices")
        return texts

    @staticmethod
    def _read_error_body_excerpt(exc: HTTPError, *, max_chars: int = 500) -> str | None:
        if exc.fp is None:
            return None
        try:
            raw = exc.read()
        except OSError:
            return None

        if not raw:
            return None

        excerpt = raw.decode("utf-8", errors="replace").replace("\n", " ").strip()
        if len(excerpt) > max_chars:
            return f"{excerpt[:max_chars]}..."
        return excerpt
