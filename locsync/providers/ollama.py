"""
Ollama translator - local models over the Ollama HTTP API.

Each call has a bounded timeout and is retried with exponential back-off.
Reasoning models (DeepSeek-R1) wrap their answer in <think> blocks and
sometimes prose, so the response is searched for the JSON payload.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from locsync.config import Settings, get_settings
from locsync.i18n.languages import get_language_name, normalize_language_code
from locsync.providers.base import (
    BaseTranslator,
    ProviderError,
    TranslationValidationError,
)


logger = logging.getLogger(__name__)

_THINK_BLOCK = re.compile(r"<think>[\s\S]*?</think>")
_DEEPSEEK_TOKENS = re.compile(r"<｜[^｜]*｜>")
_FENCED = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

DEEPSEEK_STOP = [
    "<｜begin▁of▁sentence｜>",
    "<｜end▁of▁sentence｜>",
    "<｜User｜>",
    "<｜Assistant｜>",
]


def parse_translation_response(text: str) -> list[str]:
    """
    Extract the list of translations from a raw model answer.

    Accepts a bare JSON array, an object with a ``translations`` array, and
    either of those inside a fenced code block or surrounded by prose.

    Raises:
        ProviderError: no usable JSON found
    """
    cleaned = _THINK_BLOCK.sub("", text)
    cleaned = _DEEPSEEK_TOKENS.sub("", cleaned).strip()

    candidates = [cleaned]
    fenced = _FENCED.search(cleaned)
    if fenced:
        candidates.append(fenced.group(1))
    for pattern in (_JSON_ARRAY, _JSON_OBJECT):
        match = pattern.search(cleaned)
        if match:
            candidates.append(match.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        translations = _as_translation_list(parsed)
        if translations is not None:
            return translations

    raise ProviderError(f"Could not extract translations from response: {text[:200]!r}")


def _as_translation_list(parsed: Any) -> list[str] | None:
    if isinstance(parsed, dict):
        parsed = parsed.get("translations")
    if isinstance(parsed, list) and all(isinstance(item, str) for item in parsed):
        return parsed
    return None


class OllamaTranslator(BaseTranslator):
    """
    Translator for a local Ollama server.

    Usage:
        translator = OllamaTranslator(base_url="http://localhost:11434", model="llama3")
        if await translator.is_available():
            texts = await translator.translate(["Hello"], "fr")
    """

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_wait: wait_base | None = None,
    ):
        settings = settings or get_settings()
        self.base_url = (base_url or settings.ollama_url).rstrip("/")
        self.model = model or settings.ollama_model
        self.timeout = timeout if timeout is not None else settings.ollama_timeout
        self.max_retries = max_retries if max_retries is not None else settings.ollama_max_retries
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=5)
        self._transport = transport

    @property
    def name(self) -> str:
        return f"Ollama ({self.model})"

    @property
    def is_deepseek(self) -> bool:
        return "deepseek" in self.model.lower()

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else self.timeout,
            transport=self._transport,
        )

    async def translate(self, strings: list[str], target_lang: str) -> list[str]:
        if not strings:
            return []

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=self.retry_wait,
                retry=retry_if_exception_type(
                    (httpx.HTTPError, ProviderError, TranslationValidationError)
                ),
                reraise=True,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.info(
                            f"[Ollama] Retry {attempt.retry_state.attempt_number}/{self.max_retries}"
                        )
                    return await self._attempt_translation(strings, target_lang)
        except httpx.TimeoutException as e:
            raise ProviderError(f"Ollama request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Ollama request failed: {e}") from e

    async def _attempt_translation(self, strings: list[str], target_lang: str) -> list[str]:
        body = {
            "model": self.model,
            "prompt": self._build_prompt(strings, target_lang),
            "stream": False,
            "format": "json",
            "options": {
                "temperature": 0.1,
                "top_p": 0.95,
            },
        }
        if self.is_deepseek:
            body["options"]["stop"] = DEEPSEEK_STOP

        logger.debug(f"[Ollama] {self.model}: {len(strings)} strings -> {target_lang}")

        async with self._client() as client:
            response = await client.post("/api/generate", json=body)
        if response.status_code != 200:
            raise ProviderError(f"Ollama API error: {response.status_code} {response.reason_phrase}")

        try:
            text = response.json().get("response", "")
        except ValueError as e:
            raise ProviderError(f"Ollama returned invalid JSON: {e}") from e

        translations = parse_translation_response(text)
        self.validate_response(strings, translations)
        return translations

    def _build_prompt(self, strings: list[str], target_lang: str) -> str:
        language = get_language_name(target_lang)
        payload = json.dumps(strings, ensure_ascii=False, indent=2)
        rules = f"""Translate these {len(strings)} strings from English to {language} ({target_lang}).

Rules:
1. Return ONLY a valid JSON array with exactly {len(strings)} translated strings
2. Keep the exact same order as the input
3. Preserve placeholders unchanged ({{{{variable}}}}, {{0}}, %s, ${{var}}, __PRESERVE_..._N__)
4. Do not add explanations, markdown or any other text

Example:
Input: ["Hello", "Welcome {{{{name}}}}"]
Output: ["Hola", "Bienvenido {{{{name}}}}"]

Input:
{payload}"""

        if self.is_deepseek:
            return f"<｜User｜>{rules}\n<｜Assistant｜>"
        return f"{rules}\n\nOutput:"

    async def is_available(self) -> bool:
        """True if the server answers and the configured model is installed."""
        try:
            models = await self.list_models(timeout=5.0)
        except ProviderError:
            return False
        wanted = {self.model, f"{self.model}:latest"}
        return any(name in wanted for name in models)

    async def list_models(self, timeout: float | None = None) -> list[str]:
        """Names of locally installed models."""
        try:
            async with self._client(timeout) as client:
                response = await client.get("/api/tags")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"Failed to connect to Ollama: {e}") from e
        return [m.get("name", "") for m in data.get("models", []) if isinstance(m, dict)]

    async def detect_language(self, samples: list[str]) -> str:
        """Ask the model for an ISO 639-1 code; English on any failure."""
        if not samples:
            return "en"

        prompt = (
            "Identify the language of the following text. "
            'Reply with JSON like {"language": "en"} using the ISO 639-1 code.\n\n'
            + "\n".join(samples[:20])
        )
        try:
            async with self._client() as client:
                response = await client.post(
                    "/api/generate",
                    json={"model": self.model, "prompt": prompt, "stream": False, "format": "json"},
                )
            response.raise_for_status()
            text = _THINK_BLOCK.sub("", response.json().get("response", ""))
            code = json.loads(text).get("language", "en")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning(f"[Ollama] Language detection failed: {e}")
            return "en"
        return normalize_language_code(str(code)) or "en"
