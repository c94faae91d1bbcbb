"""
Async client for the Convex HTTP function API.

Queries and mutations are POSTed to ``/api/query`` and ``/api/mutation``.
Mutations run as serializable transactions on the server; vote counter
increments depend on that.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx

from ..config import settings

logger = logging.getLogger(__name__)


class ConvexError(Exception):
    """A Convex function call failed."""

    def __init__(self, message: str, function_name: Optional[str] = None):
        super().__init__(message)
        self.function_name = function_name


class ConvexAuthError(ConvexError):
    """The deploy key was rejected."""


class ConvexQueryError(ConvexError):
    pass


class ConvexMutationError(ConvexError):
    pass


_ERRORS = {
    "query": ConvexQueryError,
    "mutation": ConvexMutationError,
}


class ConvexClient:
    """
    Thin wrapper over the Convex HTTP API.

    Example usage:
        client = ConvexClient("https://your-deployment.convex.cloud", "prod:key")
        prefs = await client.query("preferences:get", {"userId": "u1"})
        previous = await client.mutation("votes:upsert", {...})
    """

    def __init__(
        self,
        deployment_url: Optional[str] = None,
        deploy_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        url = deployment_url or settings.convex_url
        if not url:
            raise ConvexError("CONVEX_URL is required when STORAGE_BACKEND=convex")
        self.deployment_url = url.rstrip("/")
        self.deploy_key = deploy_key or settings.convex_deploy_key
        self.timeout = timeout or settings.storage_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.deploy_key:
            headers["Authorization"] = f"Convex {self.deploy_key}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.deployment_url,
                timeout=self.timeout,
                headers=self._headers(),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _call(self, kind: str, function_name: str, args: Optional[Dict[str, Any]]) -> Any:
        error_cls = _ERRORS[kind]
        client = await self._get_client()
        start = time.perf_counter()

        try:
            response = await client.post(f"/api/{kind}", json={"path": function_name, "args": args or {}})
        except httpx.RequestError as e:
            raise error_cls(f"{function_name} request failed: {e}", function_name) from e

        if response.status_code in (401, 403):
            raise ConvexAuthError("Invalid or missing deploy key", function_name)
        if response.is_error:
            raise error_cls(
                f"{function_name} returned {response.status_code}: {response.text[:200]}",
                function_name,
            )

        data = response.json()
        if data.get("status") == "error":
            raise error_cls(data.get("errorMessage") or "Unknown Convex error", function_name)

        logger.debug(f"Convex {kind} {function_name} took {(time.perf_counter() - start) * 1000:.1f}ms")
        return data.get("value")

    async def query(self, function_name: str, args: Optional[Dict[str, Any]] = None) -> Any:
        """Run a read-only Convex query."""
        return await self._call("query", function_name, args)

    async def mutation(self, function_name: str, args: Optional[Dict[str, Any]] = None) -> Any:
        """Run a transactional Convex mutation."""
        return await self._call("mutation", function_name, args)


_convex_client: Optional[ConvexClient] = None


def get_convex_client() -> ConvexClient:
    """Get the shared Convex client."""
    global _convex_client
    if _convex_client is None:
        _convex_client = ConvexClient()
    return _convex_client
