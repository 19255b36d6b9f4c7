"""
Shop API Client

HTTP client for the shop REST API (`/api/v1`).
Attaches the stored bearer token to every request and performs a single
refresh-and-retry when a request comes back 401.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

import httpx

from .errors import (
    GENERIC_ERROR_MESSAGE,
    AuthError,
    UnknownError,
    error_from_exception,
    error_from_response,
)
from .tokens import TokenPair, TokenStore

logger = logging.getLogger(__name__)

REFRESH_PATH = "/auth/refresh"


class ApiClient:
    """
    Client for the shop REST API.

    Concurrent requests that hit 401 at the same time share one in-flight
    refresh call instead of each refreshing on their own.

    Usage:
        client = ApiClient("http://localhost:8080/api/v1", token_store, timeout=10.0)
        products = await client.get("/products", params={"page": 1}, envelope=True)
        cart = await client.post("/cart/items", json={"productId": 1, "quantity": 2})
    """

    def __init__(
        self,
        base_url: str,
        token_store: TokenStore,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_auth_lost: Optional[Callable[[], None]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: API root, e.g. http://localhost:8080/api/v1
            token_store: Where the current token pair lives
            timeout: Client-wide request timeout in seconds, None for no timeout
            transport: Custom httpx transport (tests use httpx.MockTransport)
            on_auth_lost: Called after credentials are dropped because a refresh failed
            http_client: Shared connection pool; timeout and transport are then ignored
        """
        self.base_url = base_url.rstrip("/")
        self.tokens = token_store
        self.on_auth_lost = on_auth_lost
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout, transport=transport)
        self._refresh_task: Optional[asyncio.Task] = None

    async def close(self) -> None:
        """Close HTTP client, unless it is shared"""
        if self._owns_http_client:
            await self._http_client.aclose()

    @staticmethod
    def unwrap(body: Any) -> Any:
        """Strip the {"data": ...} envelope the API wraps results in"""
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    def _headers(self, access_token: Optional[str]) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _send(
        self,
        method: str,
        url: str,
        access_token: Optional[str],
        json: Any = None,
        params: Optional[dict] = None,
        files: Optional[dict] = None,
        timeout: Any = httpx.USE_CLIENT_DEFAULT,
    ) -> httpx.Response:
        try:
            return await self._http_client.request(
                method=method,
                url=url,
                headers=self._headers(access_token),
                json=json,
                params=params,
                files=files,
                timeout=timeout,
            )
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise error_from_exception(e) from e

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[dict] = None,
        files: Optional[dict] = None,
        timeout: Any = httpx.USE_CLIENT_DEFAULT,
        auth: bool = True,
        envelope: bool = False,
        fallback: str = GENERIC_ERROR_MESSAGE,
    ) -> Any:
        """
        Make an HTTP request.

        Args:
            method: HTTP method
            path: Path relative to the API root
            json: JSON body
            params: Query parameters; None values are dropped
            files: Multipart files (httpx format)
            timeout: Per-request timeout override
            auth: Attach the bearer token and refresh on 401
            envelope: Return the whole body instead of its "data" member
            fallback: Message used when the server gives no error text

        Returns:
            Decoded JSON body, None for empty responses

        Raises:
            ApiError: normalized failure
        """
        url = f"{self.base_url}{path}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        pair = self.tokens.load() if auth else None
        access_token = pair.access_token if pair else None

        response = await self._send(method, url, access_token, json, params, files, timeout)

        if response.status_code == 401 and access_token and not path.startswith("/auth/"):
            new_token = await self._token_after_401(access_token)
            response = await self._send(method, url, new_token, json, params, files, timeout)

        if response.status_code >= 400:
            logger.error(f"Request failed: {method} {path} {response.status_code} - {response.text}")
            raise error_from_response(response, fallback)

        if not response.content:
            return None

        try:
            body = response.json()
        except ValueError as e:
            raise UnknownError(fallback, status_code=response.status_code) from e

        return body if envelope else self.unwrap(body)

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)

    # ==================== Token refresh ====================

    async def _token_after_401(self, rejected_token: str) -> str:
        """Access token to retry with after `rejected_token` got a 401"""
        current = self.tokens.load()
        if current and current.access_token != rejected_token:
            # Another request already refreshed while this one was in flight
            return current.access_token
        return await self.refresh_access_token()

    async def refresh_access_token(self) -> str:
        """
        Exchange the refresh token for a new pair.

        Joins the refresh already in flight, if any. A cancelled caller
        leaves the shared refresh running for the others.
        """
        task = self._refresh_task
        if task is None:
            task = asyncio.ensure_future(self._refresh_tokens())
            self._refresh_task = task
            task.add_done_callback(self._forget_refresh)
        return await asyncio.shield(task)

    def _forget_refresh(self, task: asyncio.Future) -> None:
        if self._refresh_task is task:
            self._refresh_task = None

    def _drop_credentials(self) -> None:
        self.tokens.clear()
        logger.warning("Credentials cleared after failed token refresh")
        if self.on_auth_lost:
            self.on_auth_lost()

    async def _refresh_tokens(self) -> str:
        pair = self.tokens.load()
        if not pair or not pair.refresh_token:
            self._drop_credentials()
            raise AuthError("Сессия истекла, войдите снова")

        try:
            response = await self._http_client.post(
                f"{self.base_url}{REFRESH_PATH}",
                json={"refreshToken": pair.refresh_token},
            )
            response.raise_for_status()
            data = self.unwrap(response.json())
            new_pair = TokenPair(
                access_token=data["accessToken"],
                refresh_token=data.get("refreshToken") or pair.refresh_token,
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Token refresh failed: {e}")
            self._drop_credentials()
            raise AuthError("Сессия истекла, войдите снова") from e

        self.tokens.save(new_pair)
        logger.info("Refreshed access token")
        return new_pair.access_token
