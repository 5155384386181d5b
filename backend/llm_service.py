"""
Generative provider client used by the AI gateway.

Speaks three wire formats: Gemini ``generateContent``, OpenAI-compatible chat
completions (openai, groq) and Ollama ``/api/generate``. Any failure is raised
as ``UpstreamError``; callers decide whether a deterministic fallback applies.
"""

import asyncio
import logging
import re
import time
from typing import Optional

import httpx

from config import ProviderSettings
from errors import UpstreamError

logger = logging.getLogger(__name__)

GEMINI_URL_TEMPLATE = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
GROQ_URL = "https://api.groq.com/openai/v1/chat/completions"
OLLAMA_URL = "http://localhost:11434/api/generate"

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


class LLMService:
    """Text completion over HTTP with retry and backoff."""

    def __init__(
        self,
        config: ProviderSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport
        self._rate_limited_until_ts = 0.0

    @property
    def provider(self) -> str:
        name = (self.config.provider or "").lower().strip()
        api_url = self.config.api_url or ""
        if name in ("gemini", "openai", "groq", "ollama"):
            return name
        if "generativelanguage.googleapis.com" in api_url:
            return "gemini"
        if "api.groq.com/openai/v1" in api_url or "api.openai.com/v1" in api_url:
            return "openai"
        return "ollama" if api_url else "gemini"

    @staticmethod
    def _parse_retry_after(response: httpx.Response) -> float:
        """Extract wait time from rate-limit headers."""
        ra = response.headers.get("retry-after", "")
        if ra:
            try:
                return float(ra)
            except ValueError:
                pass
        # e.g. "1m26.4s", "305ms", "6.5s"
        for hdr in ("x-ratelimit-reset-tokens", "x-ratelimit-reset-requests"):
            val = response.headers.get(hdr, "")
            if not val:
                continue
            total = 0.0
            m = re.search(r"(\d+)m(?!s)", val)
            if m:
                total += int(m.group(1)) * 60
            ms = re.search(r"(\d+)ms", val)
            if ms:
                total += int(ms.group(1)) / 1000.0
            s = re.search(r"(?<![\d.])([\d.]+)s\b", val)
            if s:
                try:
                    total += float(s.group(1))
                except ValueError:
                    pass
            if total > 0:
                return total
        return 2.0

    def _build_request(self, prompt: str, system_prompt: Optional[str]) -> tuple[str, dict, dict, dict]:
        cfg = self.config
        provider = self.provider

        if provider == "gemini":
            url = cfg.api_url or GEMINI_URL_TEMPLATE.format(model=cfg.model_name)
            text = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
            payload = {
                "contents": [{"role": "user", "parts": [{"text": text}]}],
                "generationConfig": {
                    "temperature": cfg.temperature,
                    "maxOutputTokens": cfg.max_tokens,
                },
            }
            return url, payload, {"key": cfg.api_key} if cfg.api_key else {}, {}

        if provider in ("openai", "groq"):
            url = cfg.api_url or (GROQ_URL if provider == "groq" else OPENAI_URL)
            payload = {
                "model": cfg.model_name,
                "messages": [
                    {"role": "system", "content": system_prompt or "You are a helpful forum assistant."},
                    {"role": "user", "content": prompt},
                ],
                "temperature": cfg.temperature,
                "max_tokens": cfg.max_tokens,
            }
            headers = {"Authorization": f"Bearer {cfg.api_key}"}
            return url, payload, {}, headers

        full_prompt = f"{system_prompt}\n\nUser: {prompt}\n\nAssistant:" if system_prompt else prompt
        payload = {
            "model": cfg.model_name,
            "prompt": full_prompt,
            "stream": False,
            "options": {"temperature": cfg.temperature, "num_predict": cfg.max_tokens},
        }
        headers = {"Authorization": f"Bearer {cfg.api_key}"} if cfg.api_key else {}
        return cfg.api_url or OLLAMA_URL, payload, {}, headers

    def _extract_text(self, result) -> str:
        provider = self.provider
        if provider == "gemini":
            candidates = (result or {}).get("candidates") or []
            if not candidates:
                raise UpstreamError("Provider returned no candidates")
            parts = (candidates[0].get("content") or {}).get("parts") or []
            return "".join(part.get("text", "") for part in parts).strip()
        if provider in ("openai", "groq"):
            choices = (result or {}).get("choices") or []
            if not choices:
                return ""
            return (choices[0].get("message") or {}).get("content", "").strip()
        if isinstance(result, dict):
            return (result.get("response") or "").strip()
        return str(result).strip()

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Return the provider's completion for ``prompt``."""
        now_ts = time.time()
        if now_ts < self._rate_limited_until_ts:
            raise UpstreamError("Provider is rate limited")

        url, payload, params, headers = self._build_request(prompt, system_prompt)
        attempts = self.config.max_retry_attempts
        base = self.config.retry_backoff_base_sec

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_sec, transport=self._transport) as client:
                for attempt in range(attempts):
                    logger.debug("provider=%s attempt=%d start", self.provider, attempt + 1)
                    response = await client.post(url, json=payload, params=params, headers=headers)
                    if response.status_code == 200:
                        self._rate_limited_until_ts = 0.0
                        return self._extract_text(response.json())
                    if response.status_code in RETRYABLE_STATUS and attempt < attempts - 1:
                        if response.status_code == 429:
                            backoff = max(self._parse_retry_after(response), base * (2 ** attempt))
                        else:
                            backoff = base * (attempt + 1)
                        logger.warning(
                            "provider=%s attempt=%d http=%d retrying in %.1fs",
                            self.provider, attempt + 1, response.status_code, backoff,
                        )
                        await asyncio.sleep(backoff)
                        continue
                    if response.status_code == 429:
                        self._rate_limited_until_ts = time.time() + self._parse_retry_after(response)
                    raise UpstreamError(f"Provider returned http={response.status_code}")
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Provider request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamError("Provider returned invalid JSON") from exc
        raise UpstreamError("Provider retries exhausted")


def build_provider(config: ProviderSettings) -> Optional[LLMService]:
    """The provider client, or None when no provider is configured."""
    if not config.configured:
        return None
    return LLMService(config)
