"""GraphQL transport for the build service API.

Provides GraphqlClient, which posts queries and mutations and returns the
``data`` object of the response.
"""

import asyncio
import logging

import aiohttp

logger = logging.getLogger(__name__)


class GraphqlError(Exception):
    """Raised when the API rejects a request or returns GraphQL errors."""

    def __init__(self, message: str, *, errors: list | None = None, status: int | None = None):
        super().__init__(message)
        self.errors = errors or []
        self.status = status


class GraphqlClient:
    """Client for the GraphQL endpoint.

    Usage as async context manager (reuses one session)::

        async with GraphqlClient(api_url, token) as client:
            data = await client.query(APP_BY_FULL_NAME, {"fullName": "@me/app"})

    Usage without context manager (creates session per call)::

        client = GraphqlClient(api_url, token)
        data = await client.query(APP_BY_FULL_NAME, {"fullName": "@me/app"})
    """

    def __init__(self, api_url: str, token: str, *, timeout: int = 30):
        self.api_url = api_url
        self.token = token
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None
        self._owns_session = False

    async def __aenter__(self):
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        )
        self._owns_session = True
        return self

    async def __aexit__(self, *exc):
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None
            self._owns_session = False

    async def _get_session(self) -> tuple[aiohttp.ClientSession, bool]:
        """Return (session, should_close)."""
        if self._session:
            return self._session, False
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ), True

    async def query(self, document: str, variables: dict | None = None) -> dict:
        """Execute a query or mutation.

        Returns:
            The ``data`` object of the response.

        Raises:
            ConnectionError: Cannot reach the API, or the request timed out.
            GraphqlError: HTML or non-JSON body, non-200 status, or GraphQL
                errors in the response.
        """
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "User-Agent": "mobuild",
        }
        body = {"query": document}
        if variables:
            body["variables"] = variables

        session, should_close = await self._get_session()
        try:
            async with session.post(self.api_url, json=body, headers=headers) as resp:
                content_type = resp.headers.get("Content-Type", "")
                if "text/html" in content_type:
                    raise GraphqlError(
                        f"API returned HTML (status {resp.status})",
                        status=resp.status,
                    )

                if resp.status != 200:
                    text = await resp.text()
                    raise GraphqlError(
                        f"API error (status {resp.status}): {text}",
                        status=resp.status,
                    )

                try:
                    result = await resp.json()
                except (aiohttp.ContentTypeError, ValueError) as e:
                    raise GraphqlError(
                        f"Invalid API response (status {resp.status}): {e}",
                        status=resp.status,
                    ) from e
        except asyncio.TimeoutError as e:
            raise ConnectionError(
                f"Timed out contacting API at {self.api_url} after {self.timeout}s"
            ) from e
        except aiohttp.ClientConnectionError as e:
            raise ConnectionError(
                f"Cannot connect to API at {self.api_url}: {e}"
            ) from e
        finally:
            if should_close:
                await session.close()

        if not isinstance(result, dict):
            raise GraphqlError("Invalid API response: expected a JSON object")

        if result.get("errors"):
            messages = "; ".join(
                err.get("message", str(err)) for err in result["errors"]
            )
            raise GraphqlError(f"GraphQL error: {messages}", errors=result["errors"])

        logger.debug("graphql request ok vars=%s", sorted((variables or {}).keys()))
        return result.get("data") or {}
