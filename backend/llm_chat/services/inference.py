from __future__ import annotations

from typing import Any, AsyncIterator, Dict

import httpx

from llm_chat.errors import BackendNotConfigured
from llm_chat.services.upstream import iter_body, open_stream

WORKERS_AI_RUN_URL = "https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/{model_id}"


class WorkersAIClient:
    """
    Minimal Workers AI REST client.

    run() returns the upstream body as-is; with stream=True that body is
    already an event stream of JSON chunks.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None,
        account_id: str | None,
        api_token: str | None,
    ) -> None:
        self.http_client = http_client
        self.account_id = account_id
        self.api_token = api_token

    async def run(self, model_id: str, inputs: Dict[str, Any]) -> AsyncIterator[bytes]:
        if not self.account_id or not self.api_token:
            raise BackendNotConfigured("CLOUDFLARE_ACCOUNT_ID / CLOUDFLARE_API_TOKEN are not set")

        url = WORKERS_AI_RUN_URL.format(account_id=self.account_id, model_id=model_id)
        response = await open_stream(
            self.http_client,
            "POST",
            url,
            provider="Workers AI",
            headers={"Authorization": f"Bearer {self.api_token}"},
            json=inputs,
        )
        return iter_body(response, "Workers AI")
