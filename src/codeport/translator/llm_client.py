"""
Transformation oracle clients.

The oracle is an explicit capability chosen once at startup: a remote LLM
(OpenAI-compatible server, OpenRouter, OpenAI or Ollama) or a deterministic
fallback that emits a clearly marked placeholder. The remote client owns a
fallback instance and degrades to it when the endpoint is unreachable, so a
file's attempt cycle always terminates.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from uuid import uuid4

import httpx
import ollama
import openai
from openai import OpenAI

from codeport.config.models import LLMConfig, LLMProvider, ModelHint, SourceFile, TransformOptions

logger = logging.getLogger(__name__)

FALLBACK_MARKER = "// CODEPORT FALLBACK"

# Logical model aliases routed by size hint
MODEL_ALIASES = ("primary", "qwen")
MODEL_BY_HINT: dict[ModelHint, str] = {
    ModelHint.SMALL: "qwen2.5-coder:1.5b",
    ModelHint.MEDIUM: "qwen2.5-coder:3b",
    ModelHint.LARGE: "qwen2.5-coder:7b",
}


class OracleUnreachableError(RuntimeError):
    """Raised when the transformation oracle cannot be reached or times out."""

    pass


class TransformConversation:
    """Append-only message history for one file's attempt cycle."""

    def __init__(self, conversation_id: str | None = None):
        self.id = conversation_id or str(uuid4())
        self.messages: list[dict[str, str]] = []

    def add_message(self, role: str, content: str):
        """Add a message to the conversation."""
        self.messages.append({"role": role, "content": content})

    def __len__(self) -> int:
        return len(self.messages)


@dataclass
class OracleRequest:
    """Role-tagged message segments plus the options record."""

    messages: list[dict[str, str]]
    options: TransformOptions = field(default_factory=TransformOptions)
    subject: SourceFile | None = None  # File being converted, used by the fallback


@dataclass
class OracleResponse:
    """Text returned for one request."""

    text: str
    model: str
    fallback: bool = False


def resolve_model(options: TransformOptions, config: LLMConfig) -> str:
    """
    Pick a concrete model name from the logical selector and size hint.

    'primary'/'qwen' route by hint, 'default' uses the configured model, and
    anything else is treated as a concrete model name.
    """
    if options.model in MODEL_ALIASES:
        return MODEL_BY_HINT.get(options.model_hint, MODEL_BY_HINT[ModelHint.MEDIUM])
    if options.model == "default" or not options.model:
        return config.model
    return options.model


class TransformationOracle(ABC):
    """Text + options in, text out."""

    @abstractmethod
    def transform(self, request: OracleRequest) -> OracleResponse:
        """Return the oracle's full response for a request."""

    def stream(
        self, request: OracleRequest, on_token: Callable[[str], None] | None = None
    ) -> OracleResponse:
        """
        Streaming variant: deliver tokens in order, then return the assembled response.

        The default implementation delivers the whole response as one token.
        """
        response = self.transform(request)
        if on_token and response.text:
            on_token(response.text)
        return response


class DeterministicFallbackClient(TransformationOracle):
    """Offline oracle: returns the source commented out under a fallback marker."""

    model_name = "codeport-fallback"

    def transform(self, request: OracleRequest) -> OracleResponse:
        return OracleResponse(
            text=self.placeholder_for(request),
            model=self.model_name,
            fallback=True,
        )

    def placeholder_for(self, request: OracleRequest) -> str:
        if request.subject is not None:
            origin = request.subject.path
            body = request.subject.content
        else:
            origin = "<unknown>"
            user_messages = [m["content"] for m in request.messages if m.get("role") == "user"]
            body = user_messages[-1] if user_messages else ""

        lines = [
            f"{FALLBACK_MARKER}: transformation oracle unavailable.",
            f"// Source: {origin}",
            "// The original source is retained below for manual conversion.",
            "//",
        ]
        lines.extend(f"// {line}".rstrip() for line in body.splitlines())
        return "\n".join(lines) + "\n"


class RemoteOracleClient(TransformationOracle):
    """Client for a remote LLM, with deterministic fallback on transport failure."""

    OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(self, config: LLMConfig, fallback: DeterministicFallbackClient | None = None):
        self.config = config
        self.fallback = fallback or DeterministicFallbackClient()
        self._openai: OpenAI | None = None
        self._ollama: ollama.Client | None = None

        if config.provider == LLMProvider.OLLAMA:
            self._ollama = ollama.Client(host=config.host, timeout=config.timeout)
        else:
            self._openai = self._create_openai_client(config)

    def _create_openai_client(self, config: LLMConfig) -> OpenAI:
        client_kwargs: dict = {"timeout": config.timeout, "max_retries": 0}

        if config.provider == LLMProvider.OPENAI_COMPATIBLE:
            if not config.base_url:
                raise ValueError("base_url required for an OpenAI-compatible provider")
            client_kwargs["base_url"] = f"{config.base_url.rstrip('/')}/v1"
            # Local servers usually ignore the key, but the SDK insists on one
            client_kwargs["api_key"] = config.api_key or "not-needed"
        else:
            if not config.api_key:
                raise ValueError("API key required (set llm.api_key in config or OPENAI_API_KEY env var)")
            client_kwargs["api_key"] = config.api_key
            if config.provider == LLMProvider.OPENROUTER:
                client_kwargs["base_url"] = self.OPENROUTER_BASE_URL

        return OpenAI(**client_kwargs)

    # =========================================================================
    # Public API
    # =========================================================================

    def transform(self, request: OracleRequest) -> OracleResponse:
        model = resolve_model(request.options, self.config)
        try:
            text = self._complete(request, model)
        except OracleUnreachableError as e:
            logger.warning(f"Transformation oracle unreachable ({e}); using fallback output")
            return self.fallback.transform(request)
        return OracleResponse(text=text, model=model)

    def stream(
        self, request: OracleRequest, on_token: Callable[[str], None] | None = None
    ) -> OracleResponse:
        model = resolve_model(request.options, self.config)
        tokens: list[str] = []
        try:
            for token in self.iter_tokens(request, model):
                tokens.append(token)
                if on_token:
                    on_token(token)
        except OracleUnreachableError as e:
            logger.warning(f"Transformation oracle stream interrupted ({e}); using fallback output")
            return self.fallback.transform(request)
        return OracleResponse(text="".join(tokens), model=model)

    def iter_tokens(self, request: OracleRequest, model: str | None = None) -> Iterator[str]:
        """Yield response tokens in order; exhaustion marks the end of the stream."""
        model = model or resolve_model(request.options, self.config)
        try:
            if self._ollama is not None:
                chunks = self._ollama.chat(
                    model=model,
                    messages=request.messages,
                    stream=True,
                    options=self._ollama_options(request.options),
                )
                for chunk in chunks:
                    token = chunk["message"]["content"]
                    if token:
                        yield token
            else:
                chunks = self._openai.chat.completions.create(
                    model=model,
                    messages=request.messages,
                    temperature=request.options.temperature,
                    max_tokens=request.options.max_tokens,
                    stream=True,
                )
                for chunk in chunks:
                    if not chunk.choices:
                        continue
                    token = chunk.choices[0].delta.content
                    if token:
                        yield token
        except self._transport_errors() as e:
            raise OracleUnreachableError(str(e)) from e

    # =========================================================================
    # Internals
    # =========================================================================

    def _complete(self, request: OracleRequest, model: str) -> str:
        try:
            if self._ollama is not None:
                response = self._ollama.chat(
                    model=model,
                    messages=request.messages,
                    options=self._ollama_options(request.options),
                )
                return response["message"]["content"] or ""

            response = self._openai.chat.completions.create(
                model=model,
                messages=request.messages,
                temperature=request.options.temperature,
                max_tokens=request.options.max_tokens,
            )
            if not response.choices:
                return ""
            return response.choices[0].message.content or ""
        except self._transport_errors() as e:
            raise OracleUnreachableError(str(e)) from e

    def _ollama_options(self, options: TransformOptions) -> dict:
        return {
            "temperature": options.temperature,
            "num_ctx": self.config.context_window,
            "num_predict": options.max_tokens,
        }

    @staticmethod
    def _transport_errors() -> tuple[type[BaseException], ...]:
        return (
            openai.APIConnectionError,  # includes APITimeoutError
            openai.InternalServerError,
            httpx.TransportError,
            ConnectionError,
            TimeoutError,
        )


def create_oracle_client(config: LLMConfig) -> TransformationOracle:
    """Select the oracle variant once, from configuration."""
    if config.provider == LLMProvider.FALLBACK:
        logger.info("Using deterministic fallback oracle (provider=fallback)")
        return DeterministicFallbackClient()

    if config.provider == LLMProvider.OPENAI_COMPATIBLE and not config.base_url:
        logger.info("Using deterministic fallback oracle (no llm.base_url configured)")
        return DeterministicFallbackClient()

    return RemoteOracleClient(config)
