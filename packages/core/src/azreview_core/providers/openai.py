from __future__ import annotations

try:
    from openai import AzureOpenAI as _AzureOpenAI
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]
    _AzureOpenAI = None  # type: ignore[assignment,misc]

from azreview_core.providers.base import BaseReviewer


class OpenAIReviewer(BaseReviewer):
    """Streaming chat-completion reviewer backed by the ``openai`` SDK."""

    MODEL = "gpt-3.5-turbo"

    def __init__(self, api_key: str, model: str | None = None, client=None):
        if client is None:
            if _OpenAI is None:
                raise ImportError("The 'openai' package is required for this provider. Install it with: pip install openai")
            client = _OpenAI(api_key=api_key)
        self.client = client
        self.model = model or self.MODEL

    @classmethod
    def for_azure(cls, endpoint: str, api_key: str, api_version: str, model: str | None = None) -> OpenAIReviewer:
        """Build the same reviewer on the SDK's Azure OpenAI client (``model`` is the deployment name)."""
        if _AzureOpenAI is None:
            raise ImportError("The 'openai' package is required for this provider. Install it with: pip install openai")
        client = _AzureOpenAI(azure_endpoint=endpoint, api_key=api_key, api_version=api_version)
        return cls(api_key=api_key, model=model, client=client)

    def _call_api(self, instructions: str, diff: str) -> str:
        stream = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": instructions},
                {"role": "user", "content": diff},
            ],
            max_tokens=self.MAX_TOKENS,
            stream=True,
        )
        parts = []
        for chunk in stream:
            # Azure sends a leading chunk with no choices (prompt filter results).
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                parts.append(content)
        return "".join(parts)
