"""
LLM Client — one prompt in, generated text out.

Providers (LLM_PROVIDER):
- gemini:    Google Gemini generateContent REST API (default)
- openai:    OpenAI-compatible chat completions
- anthropic: Anthropic Messages API

Failures are split into ModelOverloaded (capacity; the chat answers with a
retry-later message) and ModelFailure (everything else).

Privacy: customer text is passed through sanitize_for_llm() before it is
placed in a prompt.
"""

import re
import time
from typing import Any, Dict, Optional

import requests

from app_config import (
    LLM_PROVIDER,
    LLM_MODEL,
    LLM_API_KEY,
    LLM_API_BASE_URL,
    LLM_TEMPERATURE,
    LLM_MAX_TOKENS,
    LLM_TIMEOUT_SECONDS,
)
from chat_logger import get_logger, sanitize_log_string, sanitize_url
from errors import ModelFailure, ModelOverloaded

logger = get_logger("lpj_chat")

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1/models"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"

# 429 rate limit, 503 unavailable, 529 Anthropic "overloaded"
OVERLOAD_STATUS_CODES = {429, 503, 529}
OVERLOAD_MARKERS = ("overloaded", "unavailable", "resource_exhausted")


# ══════════════════════════════════════════════════════════════
# PRIVACY & SANITIZATION
# ══════════════════════════════════════════════════════════════

def sanitize_for_llm(text: str) -> str:
    """
    Remove PII from customer messages before sending them to the LLM.

    Strips:
    - Email addresses
    - Credit card numbers
    - Phone numbers
    """
    if not text:
        return text

    text = re.sub(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b', '[EMAIL]', text)

    # Cards before phones: the phone pattern would swallow card digits
    text = re.sub(r'\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b', '[CARD]', text)

    # Phone: leading + or 0, then 8+ digits with at most one separator between them
    text = re.sub(r'(?<![\w+])(?:\+|0)\d(?:[\s/().-]?\d){7,}\b', '[PHONE]', text)

    return text


# ══════════════════════════════════════════════════════════════
# LLM CLIENT (Multi-Provider Support)
# ══════════════════════════════════════════════════════════════

class LLMClient:
    """Abstraction over LLM providers — configurable via environment variables."""

    def __init__(
        self,
        provider: str = LLM_PROVIDER,
        model: str = LLM_MODEL,
        api_key: str = LLM_API_KEY,
        api_base_url: str = LLM_API_BASE_URL,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
        timeout: int = LLM_TIMEOUT_SECONDS,
    ):
        self.provider = provider.lower()
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

        if self.provider == "gemini":
            base = (api_base_url or GEMINI_BASE_URL).rstrip("/")
            self.api_url = f"{base}/{self.model}:generateContent"
        elif self.provider == "openai":
            self.api_url = api_base_url or OPENAI_URL
        elif self.provider == "anthropic":
            self.api_url = api_base_url or ANTHROPIC_URL
        else:
            raise ValueError(f"Unsupported LLM provider: {self.provider}")

    def generate(self, prompt: str) -> Dict[str, Any]:
        """
        Send one prompt to the configured provider.

        Returns:
            Dict with content, input_tokens, output_tokens, total_tokens,
            model and latency_ms.

        Raises:
            ModelOverloaded: provider reported a capacity problem
            ModelFailure: any other failure, including a missing API key
        """
        if not self.api_key:
            raise ModelFailure(f"No API key configured for provider '{self.provider}'")

        start_time = time.time()
        try:
            if self.provider == "gemini":
                result = self._gemini_completion(prompt)
            elif self.provider == "openai":
                result = self._openai_completion(prompt)
            else:
                result = self._anthropic_completion(prompt)
        except ModelOverloaded as e:
            logger.warning(f"LLM overloaded | provider={self.provider} | error={sanitize_log_string(str(e))}")
            raise
        except ModelFailure as e:
            logger.error(f"LLM API call failed | provider={self.provider} | error={sanitize_log_string(str(e))}")
            raise

        result["latency_ms"] = int((time.time() - start_time) * 1000)
        return result

    # ─────────────────────────────────────────────
    # PROVIDERS
    # ─────────────────────────────────────────────

    def _gemini_completion(self, prompt: str) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
            },
        }
        data = self._post(headers, payload)

        try:
            content = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ModelFailure("Gemini returned no candidates") from e

        usage = data.get("usageMetadata", {})
        return {
            "content": content,
            "input_tokens": usage.get("promptTokenCount", 0),
            "output_tokens": usage.get("candidatesTokenCount", 0),
            "total_tokens": usage.get("totalTokenCount", 0),
            "model": self.model,
        }

    def _openai_completion(self, prompt: str) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        data = self._post(headers, payload)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ModelFailure("OpenAI returned no choices") from e
        if not content:
            raise ModelFailure("OpenAI returned empty content")

        usage = data.get("usage", {})
        return {
            "content": content,
            "input_tokens": usage.get("prompt_tokens", 0),
            "output_tokens": usage.get("completion_tokens", 0),
            "total_tokens": usage.get("total_tokens", 0),
            "model": self.model,
        }

    def _anthropic_completion(self, prompt: str) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
        }
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        data = self._post(headers, payload)

        try:
            content = data["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ModelFailure("Anthropic returned no content") from e

        usage = data.get("usage", {})
        return {
            "content": content,
            "input_tokens": usage.get("input_tokens", 0),
            "output_tokens": usage.get("output_tokens", 0),
            "total_tokens": usage.get("input_tokens", 0) + usage.get("output_tokens", 0),
            "model": self.model,
        }

    def _post(self, headers: Dict[str, str], payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST to the provider and turn every error shape into a ModelError."""
        logger.debug(f"LLM request: POST {sanitize_url(self.api_url)} | model={self.model}")
        try:
            response = requests.post(
                self.api_url,
                headers=headers,
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise ModelFailure(f"Request to {self.provider} failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        error_text = _error_text(data)
        if response.status_code >= 400 or error_text:
            detail = error_text or response.text[:300] or f"HTTP {response.status_code}"
            if _is_overload(response.status_code, detail):
                raise ModelOverloaded(detail)
            raise ModelFailure(detail)

        return data


def _error_text(data: Any) -> Optional[str]:
    """Pull the message out of Gemini/OpenAI/Anthropic error bodies."""
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if not error:
        return None
    if isinstance(error, dict):
        parts = [str(error.get(k)) for k in ("message", "status", "type") if error.get(k)]
        return " | ".join(parts) or str(error)
    return str(error)


def _is_overload(status_code: int, detail: str) -> bool:
    if status_code in OVERLOAD_STATUS_CODES:
        return True
    detail_lower = detail.lower()
    return any(marker in detail_lower for marker in OVERLOAD_MARKERS)
