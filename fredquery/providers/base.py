"""
LLM providers for the query agent.

Each provider turns one (system, prompt) pair into a single chat completion.
Calls are synchronous; the agent runs them in a worker thread.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type

import httpx

if TYPE_CHECKING:
    from fredquery.validation.config import Config


@dataclass
class ProviderResponse:
    """A single chat completion."""

    content: str
    model: str
    provider: str
    token_usage: int = 0
    finish_reason: str = "stop"
    metadata: Dict[str, Any] = field(default_factory=dict)


def chat_messages(prompt: str, system: Optional[str] = None) -> List[Dict[str, str]]:
    """Build an OpenAI-style message list, system prompt first."""
    messages = [{"role": "system", "content": system}] if system else []
    messages.append({"role": "user", "content": prompt})
    return messages


class Provider(ABC):
    """
    Base class for LLM providers.

    Subclasses set ``name`` and implement ``complete``. ``max_tokens`` and
    ``temperature`` keyword overrides fall back to the ``agent`` config section.

    Example:
        >>> class EchoProvider(Provider):
        ...     name = "echo"
        ...     def complete(self, prompt, system=None, **kwargs):
        ...         return ProviderResponse(prompt, self.model, self.name)
    """

    name: str = ""
    env_key: Optional[str] = None

    def __init__(self, model: str, config: "Config"):
        self.model = model
        self.config = config

    @property
    def provider_name(self) -> str:
        return self.name

    @abstractmethod
    def complete(self, prompt: str, system: Optional[str] = None, **kwargs) -> ProviderResponse:
        """Return the model's reply to ``prompt`` under ``system``."""

    def get_api_key(self) -> Optional[str]:
        key = self.config.get_api_key(self.name)
        if not key and self.env_key:
            key = os.environ.get(self.env_key) or None
        return key

    def require_api_key(self) -> str:
        key = self.get_api_key()
        if not key:
            hint = f" Set {self.env_key} or add it to config." if self.env_key else ""
            raise ValueError(f"{self.name} API key not configured.{hint}")
        return key

    def api_base(self, default: str) -> str:
        provider_config = self.config.get_provider_config(self.name)
        return (provider_config and provider_config.api_base) or default

    @property
    def timeout(self) -> float:
        return self.config.merged.agent.timeout

    def options(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        agent = self.config.merged.agent
        return {
            "max_tokens": kwargs.get("max_tokens", agent.max_tokens),
            "temperature": kwargs.get("temperature", agent.temperature),
        }


class OpenAIProvider(Provider):
    """OpenAI through the official SDK."""

    name = "openai"

    def complete(self, prompt: str, system: Optional[str] = None, **kwargs) -> ProviderResponse:
        try:
            import openai
        except ImportError:
            raise ImportError("openai package required. Install with: pip install fredquery[openai]")

        client = openai.OpenAI(api_key=self.require_api_key(), timeout=self.timeout)
        response = client.chat.completions.create(
            model=self.model,
            messages=chat_messages(prompt, system),
            **self.options(kwargs),
        )

        choice = response.choices[0]
        return ProviderResponse(
            content=choice.message.content or "",
            model=response.model,
            provider=self.name,
            token_usage=response.usage.total_tokens if response.usage else 0,
            finish_reason=choice.finish_reason,
        )


class AnthropicProvider(Provider):
    """Anthropic through the official SDK. The system prompt is a top-level field."""

    name = "anthropic"

    def complete(self, prompt: str, system: Optional[str] = None, **kwargs) -> ProviderResponse:
        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic package required. Install with: pip install fredquery[anthropic]"
            )

        client = anthropic.Anthropic(api_key=self.require_api_key(), timeout=self.timeout)
        extra = {"system": system} if system else {}
        response = client.messages.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            **self.options(kwargs),
            **extra,
        )

        usage = response.usage
        return ProviderResponse(
            content=response.content[0].text,
            model=response.model,
            provider=self.name,
            token_usage=usage.input_tokens + usage.output_tokens,
            finish_reason=response.stop_reason,
        )


class OllamaProvider(Provider):
    """A local Ollama server's /api/chat endpoint."""

    name = "ollama"

    def complete(self, prompt: str, system: Optional[str] = None, **kwargs) -> ProviderResponse:
        base_url = self.api_base("http://localhost:11434")
        response = httpx.post(
            f"{base_url}/api/chat",
            json={
                "model": self.model,
                "messages": chat_messages(prompt, system),
                "stream": False,
                "options": {"temperature": self.options(kwargs)["temperature"]},
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        body = response.json()

        return ProviderResponse(
            content=body["message"]["content"],
            model=body.get("model", self.model),
            provider=self.name,
            token_usage=body.get("eval_count", 0),
        )


class OpenAICompatibleProvider(Provider):
    """Any hosted service speaking the OpenAI chat completions protocol."""

    default_base_url: str = ""

    def complete(self, prompt: str, system: Optional[str] = None, **kwargs) -> ProviderResponse:
        api_key = self.require_api_key()
        base_url = self.api_base(self.default_base_url)

        response = httpx.post(
            f"{base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            json={
                "model": self.model,
                "messages": chat_messages(prompt, system),
                **self.options(kwargs),
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        body = response.json()

        choice = body["choices"][0]
        return ProviderResponse(
            content=choice["message"]["content"],
            model=body.get("model", self.model),
            provider=self.name,
            token_usage=body.get("usage", {}).get("total_tokens", 0),
            finish_reason=choice.get("finish_reason", "stop"),
        )


class OpenRouterProvider(OpenAICompatibleProvider):
    name = "openrouter"
    env_key = "OPENROUTER_API_KEY"
    default_base_url = "https://openrouter.ai/api/v1"


class GroqProvider(OpenAICompatibleProvider):
    name = "groq"
    env_key = "GROQ_API_KEY"
    default_base_url = "https://api.groq.com/openai/v1"


class ProviderFactory:
    """Resolve ``provider/model`` strings to provider instances."""

    _providers: Dict[str, Type[Provider]] = {
        cls.name: cls
        for cls in (OpenAIProvider, AnthropicProvider, OllamaProvider, OpenRouterProvider, GroqProvider)
    }

    # Bare model names are matched by prefix; anything else goes to OpenRouter.
    _prefixes = (
        (("gpt", "o1"), "openai"),
        (("claude",), "anthropic"),
        (("llama", "mixtral"), "groq"),
    )

    @classmethod
    def register(cls, provider_class: Type[Provider]) -> None:
        cls._providers[provider_class.name] = provider_class

    @classmethod
    def create(cls, model: str, config: "Config") -> Provider:
        """
        Create a provider for ``model``.

        Args:
            model: ``provider/model`` (e.g. "groq/llama-3.3-70b") or a bare
                model name whose provider is inferred.
            config: FredQuery configuration.

        Raises:
            ValueError: If the provider is not registered.
        """
        provider_name, sep, model_name = model.partition("/")
        if not sep:
            provider_name, model_name = cls._infer_provider(model), model

        try:
            provider_class = cls._providers[provider_name]
        except KeyError:
            raise ValueError(f"Unknown provider: {provider_name}") from None
        return provider_class(model=model_name, config=config)

    @classmethod
    def _infer_provider(cls, model: str) -> str:
        lowered = model.lower()
        for prefixes, provider_name in cls._prefixes:
            if lowered.startswith(prefixes):
                return provider_name
        return "openrouter"

    @classmethod
    def available_providers(cls) -> List[str]:
        return sorted(cls._providers)
