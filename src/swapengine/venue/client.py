"""
Async swap venue REST client.

Implements the price feed, quote service, execution venue and balance
source interfaces against a REST swap aggregator with:
- Connection pooling and keep-alive
- Fast JSON parsing with orjson
- Integrated rate limiting
- Connection-failure accounting
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiohttp
import orjson

from swapengine.config.constants import (
    CONFIRMATION_TIMEOUT,
    DEFAULT_VENUE_URL,
    ENDPOINT_BALANCES,
    ENDPOINT_PRICE,
    ENDPOINT_QUOTE,
    ENDPOINT_SWAP,
    ENDPOINT_TX_CONFIRM,
    ENDPOINT_TX_STATUS,
    MAX_CONNECTION_FAILURES,
)
from swapengine.core.types import Quote, SignedIntent, TradingPair, TransactionStatus
from swapengine.venue.models import (
    BalancesResponse,
    PriceResponse,
    QuoteResponse,
    SwapResponse,
    TxStatusResponse,
)
from swapengine.venue.rate_limiter import RateLimiter


logger = logging.getLogger(__name__)


class VenueError(Exception):
    """Base exception for venue errors. Transient unless subclassed otherwise."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class VenueAPIError(VenueError):
    """Error response returned by the venue."""

    @property
    def is_client_error(self) -> bool:
        """4xx other than rate limiting; retrying will not help."""
        return self.code is not None and 400 <= self.code < 500 and self.code != 429


class VenueUnavailableError(VenueError):
    """Connection to the venue is lost after exhausting retries. Fatal."""


def is_transient(exc: BaseException) -> bool:
    """Check whether an error is worth retrying."""
    if isinstance(exc, VenueUnavailableError):
        return False
    if isinstance(exc, VenueAPIError):
        return not exc.is_client_error
    return isinstance(exc, (VenueError, asyncio.TimeoutError))


class SwapVenueClient:
    """
    Async REST client for a swap aggregator.

    Features:
    - Single session with connection pooling
    - orjson for fast JSON parsing
    - Integrated rate limiting
    - Consecutive connection failures escalate to VenueUnavailableError
    """

    def __init__(
        self,
        base_url: str = DEFAULT_VENUE_URL,
        api_key: str | None = None,
        rate_limiter: RateLimiter | None = None,
        request_timeout: float = 10.0,
        confirmation_timeout: float = CONFIRMATION_TIMEOUT,
        max_connection_failures: int = MAX_CONNECTION_FAILURES,
    ) -> None:
        """
        Initialize the venue client.

        Args:
            base_url: Venue base URL.
            api_key: Optional API key header.
            rate_limiter: Optional rate limiter instance.
            request_timeout: Per-request timeout in seconds.
            confirmation_timeout: Timeout of the confirmation long-poll.
            max_connection_failures: Consecutive failures before giving up.
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._rate_limiter = rate_limiter or RateLimiter()
        self._request_timeout = request_timeout
        self._confirmation_timeout = confirmation_timeout
        self._max_connection_failures = max_connection_failures
        self._connection_failures = 0
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=50,
                limit_per_host=20,
                keepalive_timeout=30,
                enable_cleanup_closed=True,
            )

            headers = {"Accept": "application/json"}
            if self._api_key:
                headers["X-API-KEY"] = self._api_key

            self._session = aiohttp.ClientSession(
                connector=connector,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._request_timeout),
                json_serialize=lambda x: orjson.dumps(x).decode(),
            )

        return self._session

    async def close(self) -> None:
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    @asynccontextmanager
    async def _request_context(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Context manager translating network failures into venue errors."""
        session = await self._get_session()
        try:
            yield session
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            self._connection_failures += 1
            if self._connection_failures >= self._max_connection_failures:
                raise VenueUnavailableError(
                    f"Venue unreachable after {self._connection_failures} consecutive failures: {e}"
                ) from e
            raise VenueError(f"Network error: {e}") from e
        except aiohttp.ClientError as e:
            raise VenueError(f"Client error: {e}") from e

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """
        Make an API request.

        Args:
            method: HTTP method (GET, POST).
            endpoint: API endpoint path.
            params: Query parameters.
            body: JSON body for POST.
            timeout: Optional per-call timeout override.

        Returns:
            Parsed JSON response.

        Raises:
            VenueAPIError: On API error response.
            VenueError: On network or other transient errors.
            VenueUnavailableError: When connection failures are exhausted.
        """
        if endpoint == ENDPOINT_SWAP:
            await self._rate_limiter.acquire_submission()
        else:
            await self._rate_limiter.acquire_request()

        url = f"{self._base_url}{endpoint}"
        request_timeout = aiohttp.ClientTimeout(total=timeout) if timeout else None

        async with self._request_context() as session:
            if method == "GET":
                async with session.get(url, params=params, timeout=request_timeout) as response:
                    return await self._handle_response(response)
            elif method == "POST":
                async with session.post(url, json=body, timeout=request_timeout) as response:
                    return await self._handle_response(response)
            else:
                raise VenueError(f"Unsupported method: {method}")

    async def _handle_response(self, response: aiohttp.ClientResponse) -> dict[str, Any]:
        """Parse and validate response."""
        text = await response.text()
        self._connection_failures = 0

        try:
            data = orjson.loads(text) if text else {}
        except orjson.JSONDecodeError as e:
            raise VenueError(f"Invalid JSON response: {e}", code=response.status) from e

        if response.status >= 400:
            msg = data.get("error", text) if isinstance(data, dict) else text
            raise VenueAPIError(f"API error {response.status}: {msg}", code=response.status)

        return data  # type: ignore[no-any-return]

    # =========================================================================
    # Price Feed
    # =========================================================================

    async def get_prices(self, pairs: list[TradingPair]) -> dict[str, float]:
        """
        Get the current price of each pair.

        Assets are priced in USD by the venue; pair prices are derived as
        base USD / quote USD.
        """
        assets = sorted({asset for pair in pairs for asset in (pair.base, pair.quote)})
        data = await self._request("GET", ENDPOINT_PRICE, params={"ids": ",".join(assets)})
        response = PriceResponse.model_validate(data)

        prices: dict[str, float] = {}
        for pair in pairs:
            price = response.pair_price(pair.base, pair.quote)
            if price is not None:
                prices[pair.name] = price
        return prices

    # =========================================================================
    # Quote Service
    # =========================================================================

    async def get_quote(
        self,
        input_asset: str,
        output_asset: str,
        amount: float,
        slippage_bps: int,
    ) -> Quote:
        """Request a swap quote."""
        params = {
            "inputMint": input_asset,
            "outputMint": output_asset,
            "amount": f"{amount:.9f}".rstrip("0").rstrip("."),
            "slippageBps": slippage_bps,
        }
        data = await self._request("GET", ENDPOINT_QUOTE, params=params)
        return QuoteResponse.model_validate(data).to_quote()

    # =========================================================================
    # Execution Venue
    # =========================================================================

    async def submit(self, intent: SignedIntent) -> str:
        """Submit a signed swap intent."""
        quote = intent.quote
        body = {
            "account": intent.account,
            "signature": intent.signature,
            "timestamp": intent.timestamp,
            "quote": {
                "quoteId": quote.quote_id,
                "inputMint": quote.input_asset,
                "outputMint": quote.output_asset,
                "inAmount": quote.input_amount,
                "outAmount": quote.output_amount,
                "slippageBps": quote.slippage_bps,
            },
        }
        data = await self._request("POST", ENDPOINT_SWAP, body=body)
        return SwapResponse.model_validate(data).tx_id

    async def get_status(self, tx_id: str) -> TransactionStatus:
        """Get the current status of a transaction."""
        data = await self._request("GET", ENDPOINT_TX_STATUS.format(tx_id=tx_id))
        return TxStatusResponse.model_validate(data).to_status()

    async def wait_for_confirmation(self, tx_id: str) -> TransactionStatus:
        """Long-poll the venue until the transaction reaches a final status."""
        data = await self._request(
            "GET",
            ENDPOINT_TX_CONFIRM.format(tx_id=tx_id),
            timeout=self._confirmation_timeout,
        )
        return TxStatusResponse.model_validate(data).to_status()

    # =========================================================================
    # Balance Source
    # =========================================================================

    async def get_balances(self, account: str) -> dict[str, float]:
        """Get authoritative balances of an account."""
        data = await self._request("GET", ENDPOINT_BALANCES.format(account=account))
        return BalancesResponse.model_validate(data).balances

    @property
    def connection_failures(self) -> int:
        return self._connection_failures
