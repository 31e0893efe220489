"""
Thin LLM client wrappers for Groq and Anthropic.
Both expose the same complete() call returning plain text.
"""
import logging
import re
from typing import Optional
from groq import Groq
import anthropic

from scenariogen.config.settings import Settings
from scenariogen.utils.errors import LLMError

logger = logging.getLogger(__name__)


FENCE_RE = re.compile(r'^\s*```[\w+-]*[ \t]*\n?(.*?)\n?```\s*$', re.DOTALL)


def strip_code_fences(text: str) -> str:
    """
    Remove a Markdown code fence around an LLM response.

    Sometimes LLMs wrap JSON or code in ```json ... ``` blocks, or add a
    sentence before the block; in that case the first fenced block wins.
    """
    if not text:
        return ""
    text = text.strip()

    m = FENCE_RE.match(text)
    if m:
        return m.group(1).strip()

    if "```" in text:
        inner = text.split("```", 1)[1]
        # Drop the language tag on the opening fence line
        first_line, _, rest = inner.partition("\n")
        if first_line.strip() and re.fullmatch(r'[\w+-]+', first_line.strip()):
            inner = rest
        return inner.split("```", 1)[0].strip()

    return text


def is_rate_limited(error: Exception) -> bool:
    error_str = str(error).lower()
    return 'rate limit' in error_str or '429' in error_str or 'quota' in error_str


class LLMClient:
    """Common interface for text completion."""

    provider = "base"

    def __init__(self, api_key: str, model: str, temperature: float = 0.5, max_tokens: int = 1000):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def complete(self, prompt: str, system: Optional[str] = None,
                 max_tokens: Optional[int] = None, temperature: Optional[float] = None) -> str:
        """Send one user prompt and return the response text."""
        max_tokens = max_tokens or self.max_tokens
        temperature = self.temperature if temperature is None else temperature

        logger.debug("%s request: model=%s prompt_chars=%d", self.provider, self.model, len(prompt))
        try:
            content = self._complete(prompt, system, max_tokens, temperature)
        except LLMError:
            raise
        except Exception as e:
            raise LLMError(f"Error calling {self.provider} API: {e}", rate_limited=is_rate_limited(e)) from e

        content = (content or "").strip()
        if not content:
            raise LLMError(f"{self.provider} returned an empty response")

        logger.debug("%s response: %d chars", self.provider, len(content))
        return content

    def _complete(self, prompt: str, system: Optional[str], max_tokens: int, temperature: float) -> str:
        raise NotImplementedError


class GroqClient(LLMClient):
    provider = "groq"

    def __init__(self, api_key: str, model: str, temperature: float = 0.5, max_tokens: int = 1000):
        super().__init__(api_key, model, temperature, max_tokens)
        self.client = Groq(api_key=api_key)

    def _complete(self, prompt, system, max_tokens, temperature):
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            stream=False
        )
        return response.choices[0].message.content


class AnthropicClient(LLMClient):
    provider = "anthropic"

    def __init__(self, api_key: str, model: str, temperature: float = 0.5, max_tokens: int = 1000):
        super().__init__(api_key, model, temperature, max_tokens)
        self.client = anthropic.Anthropic(api_key=api_key)

    def _complete(self, prompt, system, max_tokens, temperature):
        kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        msg = self.client.messages.create(**kwargs)
        # Only text blocks carry the answer
        return "".join(getattr(block, "text", "") for block in msg.content)


def create_client(settings: Settings) -> LLMClient:
    """Build the client for the configured provider."""
    api_key = settings.api_key()
    cls = AnthropicClient if settings.llm_provider == "anthropic" else GroqClient
    logger.info("Using %s model %s", cls.provider, settings.model)
    return cls(
        api_key=api_key,
        model=settings.model,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )
