from __future__ import annotations

import requests

from azreview_core.providers.base import BaseReviewer


class AzureEndpointReviewer(BaseReviewer):
    """Single-request reviewer that POSTs straight to an Azure OpenAI deployment URL.

    The endpoint is the full chat-completions URL including ``api-version``;
    the instructions and the diff travel together as one user message.
    """

    def __init__(self, endpoint: str, api_key: str, session: requests.Session | None = None):
        self.endpoint = endpoint
        self.api_key = api_key
        self.session = session or requests.Session()

    def _call_api(self, instructions: str, diff: str) -> str:
        response = self.session.post(
            self.endpoint,
            headers={"api-key": self.api_key, "Content-Type": "application/json"},
            json={
                "max_tokens": self.MAX_TOKENS,
                "messages": [{"role": "user", "content": f"{instructions}\n, patch : {diff}"}],
            },
        )
        response.raise_for_status()
        choices = response.json().get("choices") or []
        if not choices:
            return ""
        return choices[0].get("message", {}).get("content") or ""
