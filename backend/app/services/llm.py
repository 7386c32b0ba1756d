from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from backend.app.core.config import settings
from backend.app.core.errors import UpstreamError


class GeminiClient:
    """
    Thin async wrapper over the Gemini generateContent REST call.
    No retries: every call ends in a response dict or an UpstreamError.
    """

    def __init__(self, base_url: str = None, timeout: Optional[float] = None,
                 transport: httpx.AsyncBaseTransport = None):
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.UPSTREAM_TIMEOUT_SECONDS
        self._transport = transport

    async def generate(self, model: str, contents: List[Dict[str, Any]], policy: Dict[str, Any],
                       credential: str, tools: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/models/{model}:generateContent"
        body = {"contents": contents, **policy, "tools": tools or []}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    json=body,
                    headers={"Content-Type": "application/json", "x-goog-api-key": credential},
                )
        except (httpx.HTTPError, httpx.InvalidURL) as ex:
            logger.warning(f"Upstream request to {model} failed: {type(ex).__name__}")
            raise UpstreamError(None, str(ex) or type(ex).__name__) from ex

        if response.status_code >= 400:
            logger.warning(f"Upstream {model} returned {response.status_code}")
            raise UpstreamError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as ex:
            raise UpstreamError(response.status_code, "Upstream returned a non-JSON body") from ex
        if not isinstance(data, dict):
            raise UpstreamError(response.status_code, "Upstream returned a non-object body")
        return data


def get_llm() -> GeminiClient:
    return GeminiClient()
