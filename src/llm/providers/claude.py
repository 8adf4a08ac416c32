"""Claude (Anthropic) LLM provider."""

from cli.retry import llm_retry

from ..base import LLMAuthError, LLMError, LLMProvider, LLMRateLimitError


class ClaudeProvider(LLMProvider):
    """Anthropic Claude provider."""

    provider_name = "claude"

    def __init__(self, api_key: str | None = None, model: str | None = None, client=None):
        self.model = model or "claude-3-5-haiku-latest"

        if client:
            self.client = client
            return

        try:
            from anthropic import Anthropic
        except ImportError:
            raise LLMError("anthropic package not installed. Run: pip install anthropic")

        self.client = Anthropic(api_key=api_key)

    def _get_exceptions(self):
        from anthropic import APIError, AuthenticationError, RateLimitError

        return AuthenticationError, RateLimitError, APIError

    def _handle_error(self, e: Exception):
        try:
            AuthenticationError, RateLimitError, APIError = self._get_exceptions()
        except ImportError:
            raise LLMError(f"Claude error: {e}") from e
        if isinstance(e, AuthenticationError):
            raise LLMAuthError(f"Claude auth failed: {e}") from e
        if isinstance(e, RateLimitError):
            raise LLMRateLimitError(f"Claude rate limit: {e}") from e
        if isinstance(e, APIError):
            raise LLMError(f"Claude API error: {e}") from e
        raise LLMError(f"Claude error: {e}") from e

    @llm_retry(exceptions=(LLMRateLimitError,))
    def generate(
        self,
        messages: list[dict],
        system: str | None = None,
        max_tokens: int = 2000,
        json_mode: bool = False,
    ) -> str:
        # Anthropic takes the system prompt out-of-band
        system_parts = [system] if system else []
        api_messages = []
        for msg in messages:
            if msg.get("role") == "system":
                system_parts.append(msg["content"])
            else:
                api_messages.append(msg)
        if json_mode:
            system_parts.append("Respond with a single JSON object and nothing else.")

        kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": api_messages,
        }
        if system_parts:
            kwargs["system"] = "\n\n".join(system_parts)

        try:
            response = self.client.messages.create(**kwargs)
            return "".join(
                block.text for block in response.content if getattr(block, "type", "text") == "text"
            )
        except Exception as e:
            self._handle_error(e)
