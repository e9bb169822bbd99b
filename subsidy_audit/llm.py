"""Optional narrative polishing through an external text-generation service.

The service only rephrases the deterministic reasons. Every path that is not a clean,
policy-compliant response resolves to the template text for the sanitized codes.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import httpx

from .config import (
    DEFAULT_LANGUAGE,
    GENERATION_API_KEY,
    GENERATION_API_URL,
    GENERATION_MAX_TOKENS,
    GENERATION_TEMPERATURE,
    GENERATION_TIMEOUT_S,
    PROHIBITED_PHRASES,
)
from .metrics import metrics, timed
from .templates import fallback_text, language_label
from .validation import find_blocked_phrases, sanitize_language, sanitize_reason_codes, sanitize_risk_level

logger = logging.getLogger(__name__)

PROMPT_PATH = Path(__file__).resolve().parent / "prompts" / "explanation_prompt.txt"


class FallbackReason(str, Enum):
    UNCONFIGURED = "UNCONFIGURED"
    TIMEOUT = "TIMEOUT"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    POLICY_VIOLATION = "POLICY_VIOLATION"


@dataclass(frozen=True)
class Generated:
    text: str


@dataclass(frozen=True)
class Fallback:
    text: str
    reason: FallbackReason


Outcome = Union[Generated, Fallback]


class ServiceStatusError(RuntimeError):
    def __init__(self, status_code: int):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def _load_prompt_template():
    return PROMPT_PATH.read_text(encoding="utf-8")


def _extract_text(data) -> str:
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise ValueError("Unexpected response shape from generation service")
    if not isinstance(text, str):
        raise ValueError("Generated text is not a string")
    return text


class ExplanationGenerator:
    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = (GENERATION_API_KEY if api_key is None else api_key).strip()
        self.api_url = api_url or GENERATION_API_URL
        self.timeout_s = GENERATION_TIMEOUT_S if timeout_s is None else timeout_s
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def build_prompt(self, risk_level: str, reason_codes: List[str], language: str) -> str:
        """Render the instruction. Callers must pass already-sanitized values."""
        template = _load_prompt_template()
        return template.format(
            prohibited=", ".join(f'"{p}"' for p in PROHIBITED_PHRASES),
            risk_level=risk_level,
            reasons="\n".join(f"- {code}" for code in reason_codes),
            language=language_label(language),
        )

    async def _call_service(self, prompt: str) -> str:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": GENERATION_TEMPERATURE,
                "maxOutputTokens": GENERATION_MAX_TOKENS,
            },
        }
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }
        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
            resp = await client.post(self.api_url, json=payload, headers=headers)
        if not 200 <= resp.status_code < 300:
            raise ServiceStatusError(resp.status_code)
        return _extract_text(resp.json())

    def _fallback(self, reason_codes: List[str], language: str, reason: FallbackReason) -> Fallback:
        metrics.record_fallback(reason.value)
        return Fallback(text=fallback_text(reason_codes, language), reason=reason)

    @timed
    async def generate_outcome(self, risk_level, reason_codes, language=DEFAULT_LANGUAGE) -> Outcome:
        safe_level = sanitize_risk_level(risk_level)
        safe_codes = sanitize_reason_codes(reason_codes)
        language = sanitize_language(language)

        if not self.configured:
            return self._fallback(safe_codes, language, FallbackReason.UNCONFIGURED)

        prompt = self.build_prompt(safe_level, safe_codes, language)

        # Expiry cancels the request coroutine; leaving the client context closes
        # the connection, so nothing keeps running after the fallback.
        try:
            text = await asyncio.wait_for(self._call_service(prompt), timeout=self.timeout_s)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("Generation request timed out after %.1fs", self.timeout_s)
            return self._fallback(safe_codes, language, FallbackReason.TIMEOUT)
        except ServiceStatusError as e:
            logger.error("Generation service error: HTTP %s", e.status_code)
            return self._fallback(safe_codes, language, FallbackReason.TRANSPORT_ERROR)
        except ValueError:
            logger.error("Generation service returned an unreadable response")
            return self._fallback(safe_codes, language, FallbackReason.MALFORMED_RESPONSE)
        except httpx.HTTPError as e:
            logger.error("Generation call failed: %s", type(e).__name__)
            return self._fallback(safe_codes, language, FallbackReason.TRANSPORT_ERROR)

        if not text.strip():
            logger.warning("Generation service returned empty text")
            return self._fallback(safe_codes, language, FallbackReason.MALFORMED_RESPONSE)

        blocked = find_blocked_phrases(text)
        if blocked:
            logger.info("Generated narrative discarded by output policy filter (%d terms)", len(blocked))
            return self._fallback(safe_codes, language, FallbackReason.POLICY_VIOLATION)

        metrics.record_generated()
        return Generated(text=text.strip())

    async def generate(self, risk_level, reason_codes, language=DEFAULT_LANGUAGE) -> str:
        try:
            outcome = await self.generate_outcome(risk_level, reason_codes, language)
        except Exception as e:
            logger.error("Explanation generation failed: %s", type(e).__name__)
            return fallback_text(sanitize_reason_codes(reason_codes), sanitize_language(language))
        return outcome.text
