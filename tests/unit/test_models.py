"""
Unit tests for venue response models.
"""

import pytest

from swapengine.core.types import TxStatus
from swapengine.venue.client import VenueAPIError, VenueError, VenueUnavailableError, is_transient
from swapengine.venue.models import PriceResponse, QuoteResponse, TxStatusResponse


class TestPriceResponse:
    """Tests for PriceResponse."""

    @pytest.fixture
    def response(self) -> PriceResponse:
        return PriceResponse.model_validate(
            {
                "data": {
                    "SOL": {"id": "SOL", "price": 150.0},
                    "USDC": {"id": "USDC", "price": 1.0},
                },
                "timeTaken": 0.002,
            }
        )

    def test_pair_price(self, response: PriceResponse) -> None:
        assert response.pair_price("SOL", "USDC") == pytest.approx(150.0)
        assert response.pair_price("USDC", "SOL") == pytest.approx(1 / 150.0)

    def test_missing_asset(self, response: PriceResponse) -> None:
        assert response.pair_price("BONK", "SOL") is None


class TestQuoteResponse:
    """Tests for QuoteResponse."""

    def test_to_quote(self) -> None:
        response = QuoteResponse.model_validate(
            {
                "inputMint": "SOL",
                "outputMint": "USDC",
                "inAmount": 0.14,
                "outAmount": 14.42,
                "slippageBps": 90,
                "priceImpactPct": 0.01,
                "routePlan": [{"label": "Orca"}, {"label": "Raydium"}],
                "quoteId": "abc",
            }
        )

        quote = response.to_quote()

        assert quote.input_asset == "SOL"
        assert quote.output_amount == 14.42
        assert quote.route == ("Orca", "Raydium")
        assert quote.implied_price == pytest.approx(103.0)


class TestTxStatusResponse:
    """Tests for TxStatusResponse."""

    def test_failed_status(self) -> None:
        response = TxStatusResponse.model_validate(
            {"txId": "tx1", "status": "FAILED", "err": "slippage"}
        )

        status = response.to_status()

        assert status.status == TxStatus.FAILED
        assert status.error == "slippage"
        assert status.is_final


class TestTransientErrors:
    """Tests for is_transient."""

    @pytest.mark.parametrize(
        "error,expected",
        [
            (VenueError("timeout"), True),
            (VenueAPIError("rate limited", 429), True),
            (VenueAPIError("server error", 502), True),
            (VenueAPIError("bad request", 400), False),
            (VenueUnavailableError("down"), False),
            (ValueError("other"), False),
        ],
    )
    def test_classification(self, error: Exception, expected: bool) -> None:
        assert is_transient(error) is expected
