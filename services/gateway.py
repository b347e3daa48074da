"""
Content generation gateway.

Every generation backend exposes the same capability,
`generate(prompt, system_instruction) -> str`, and is looked up by name in
BACKENDS. The gateway picks the backend, calls it and extracts the component
source from the raw response.
"""

import logging
import re
from typing import Callable, Dict, Optional, Protocol

import requests

from config import (
    AI_API_KEY,
    AI_MODEL,
    AI_PROVIDER,
    ENHANCER_API_KEY,
    ENHANCER_BACKEND,
    ENHANCER_MODEL,
    ENHANCER_SYSTEM_PROMPT,
    GENERATION_TIMEOUT_SECONDS,
    OLLAMA_API_URL,
)
from services.errors import GenerationBackendError, UnknownBackendError

CODE_BLOCK_RE = re.compile(r"```(?:tsx|typescript|ts|javascript|js|jsx)?[ \t]*\n(.*?)```", re.DOTALL)

# Backends that run locally and need no API key.
KEYLESS_BACKENDS = {"ollama"}


class GenerationBackend(Protocol):
    name: str

    def generate(self, prompt: str, system_instruction: str) -> str:
        ...


def extract_code(content: str) -> str:
    """Return the first fenced code block, or the whole trimmed response."""
    match = CODE_BLOCK_RE.search(content or "")
    if match:
        return match.group(1).strip()
    return (content or "").strip()


def _error_message(response: requests.Response) -> str:
    """Best description of a failed response, preferring the backend's own message."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        if isinstance(error, str) and error:
            return error
    text = (response.text or "").strip()
    return text or response.reason or f"HTTP {response.status_code}"


def _post(backend: str, url: str, payload: dict, headers: dict, timeout: float) -> dict:
    try:
        response = requests.post(url, json=payload, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise GenerationBackendError(f"Could not connect to {backend}: {e}", backend=backend) from e

    if not response.ok:
        message = _error_message(response)
        logging.error(f"❌ {backend} returned {response.status_code}: {message}")
        raise GenerationBackendError(message, backend=backend)

    try:
        return response.json()
    except ValueError as e:
        raise GenerationBackendError(f"{backend} returned a non-JSON response", backend=backend) from e


class ChatCompletionsBackend:
    """OpenAI-compatible chat completions API (OpenAI, A4F, OpenRouter)."""

    def __init__(
        self,
        name: str,
        url: str,
        api_key: str,
        model: str,
        extra_headers: Optional[Dict[str, str]] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        timeout: float = GENERATION_TIMEOUT_SECONDS,
    ):
        self.name = name
        self.url = url
        self.api_key = api_key
        self.model = model
        self.extra_headers = extra_headers or {}
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def generate(self, prompt: str, system_instruction: str) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
        }
        if self.max_tokens:
            payload["max_tokens"] = self.max_tokens
        headers = {"Authorization": f"Bearer {self.api_key}", **self.extra_headers}

        data = _post(self.name, self.url, payload, headers, self.timeout)
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationBackendError(f"{self.name} returned an unexpected response shape", backend=self.name) from e


class ClaudeBackend:
    """Anthropic messages API."""

    name = "claude"
    url = "https://api.anthropic.com/v1/messages"

    def __init__(self, api_key: str, model: Optional[str] = None, timeout: float = GENERATION_TIMEOUT_SECONDS):
        self.api_key = api_key
        self.model = model or "claude-3-5-sonnet-20241022"
        self.timeout = timeout

    def generate(self, prompt: str, system_instruction: str) -> str:
        payload = {
            "model": self.model,
            "max_tokens": 4096,
            "system": system_instruction,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {"x-api-key": self.api_key, "anthropic-version": "2023-06-01"}

        data = _post(self.name, self.url, payload, headers, self.timeout)
        try:
            return "".join(block.get("text", "") for block in data["content"])
        except (KeyError, TypeError) as e:
            raise GenerationBackendError("claude returned an unexpected response shape", backend=self.name) from e


class OllamaBackend:
    """Local Ollama chat API."""

    name = "ollama"

    def __init__(self, model: Optional[str] = None, url: str = OLLAMA_API_URL, timeout: float = GENERATION_TIMEOUT_SECONDS):
        self.model = model or "codellama:7b"
        self.url = url
        self.timeout = timeout

    def generate(self, prompt: str, system_instruction: str) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt},
            ],
            "stream": False,
            "options": {"temperature": 0.2, "top_p": 0.95},
        }
        data = _post(self.name, self.url, payload, {}, self.timeout)
        return data.get("message", {}).get("content", "")


BackendFactory = Callable[[str, Optional[str]], GenerationBackend]

BACKENDS: Dict[str, BackendFactory] = {
    "claude": lambda api_key, model: ClaudeBackend(api_key, model),
    "openai": lambda api_key, model: ChatCompletionsBackend(
        "openai", "https://api.openai.com/v1/chat/completions", api_key, model or "gpt-4o-mini"
    ),
    "a4f": lambda api_key, model: ChatCompletionsBackend(
        "a4f", "https://api.a4f.co/v1/chat/completions", api_key, model or "provider-8/gemini-2.0-flash"
    ),
    "openrouter": lambda api_key, model: ChatCompletionsBackend(
        "openrouter",
        "https://openrouter.ai/api/v1/chat/completions",
        api_key,
        model or "anthropic/claude-3.5-sonnet",
        extra_headers={"HTTP-Referer": "https://github.com/video-studio", "X-Title": "Video Studio AI Generator"},
        max_tokens=4096,
    ),
    "ollama": lambda api_key, model: OllamaBackend(model),
}


def is_backend_configured(name: str, api_key: str = AI_API_KEY) -> bool:
    return name.lower() in KEYLESS_BACKENDS or bool(api_key)


class ContentGenerationGateway:
    """Generates component source through a named backend."""

    def __init__(
        self,
        api_key: str = AI_API_KEY,
        default_backend: str = AI_PROVIDER,
        default_model: Optional[str] = AI_MODEL,
        enhancer_backend: str = ENHANCER_BACKEND,
        enhancer_api_key: str = ENHANCER_API_KEY,
        enhancer_model: Optional[str] = ENHANCER_MODEL,
        registry: Optional[Dict[str, BackendFactory]] = None,
    ):
        self.api_key = api_key
        self.default_backend = default_backend
        self.default_model = default_model
        self.enhancer_backend = enhancer_backend
        self.enhancer_api_key = enhancer_api_key
        self.enhancer_model = enhancer_model
        self.registry = registry if registry is not None else BACKENDS

    def _resolve(self, name: str, api_key: str, model: Optional[str]) -> GenerationBackend:
        factory = self.registry.get((name or "").lower())
        if factory is None:
            raise UnknownBackendError(
                f"Unknown AI provider: {name}. Supported: {', '.join(sorted(self.registry))}"
            )
        return factory(api_key, model)

    def generate(
        self,
        prompt: str,
        system_instruction: str,
        backend: Optional[str] = None,
        model: Optional[str] = None,
    ) -> str:
        name = backend or self.default_backend
        # The default model belongs to the default backend only.
        if model is None and name == self.default_backend:
            model = self.default_model
        generator = self._resolve(name, self.api_key, model)

        logging.info(f"📝 Sending prompt to {name}: '{prompt[:60]}'")
        raw = generator.generate(prompt, system_instruction)
        code = extract_code(raw)
        if not code:
            raise GenerationBackendError(f"{name} returned an empty response", backend=name)
        return code

    def enhance_prompt(self, prompt: str) -> str:
        """Rewrite a short request into a detailed one. Falls back to the original on any failure."""
        if not self.enhancer_api_key and self.enhancer_backend not in KEYLESS_BACKENDS:
            return prompt

        try:
            enhancer = self._resolve(self.enhancer_backend, self.enhancer_api_key, self.enhancer_model)
            enhanced = enhancer.generate(f'Enhance this video prompt: "{prompt}"', ENHANCER_SYSTEM_PROMPT).strip()
        except Exception as e:
            logging.warning(f"Prompt enhancement failed, using original prompt: {e}")
            return prompt

        if not enhanced:
            return prompt
        logging.info(f"✨ Enhanced prompt: '{enhanced[:80]}'")
        return enhanced
