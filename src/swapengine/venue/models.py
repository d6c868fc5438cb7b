"""
Pydantic models for swap venue responses.

These models provide type-safe parsing of venue responses with
automatic validation.
"""

from pydantic import BaseModel, Field

from swapengine.core.types import Quote, TransactionStatus, TxStatus


class TokenPrice(BaseModel):
    """USD price of a single asset."""

    id: str
    price: float

    model_config = {"populate_by_name": True}


class PriceResponse(BaseModel):
    """Response of the price endpoint."""

    data: dict[str, TokenPrice]
    time_taken: float = Field(default=0.0, alias="timeTaken")

    model_config = {"populate_by_name": True}

    def pair_price(self, base: str, quote: str) -> float | None:
        """
        Price of `base` expressed in `quote` units.

        Both assets are priced in USD by the venue.
        """
        base_price = self.data.get(base)
        quote_price = self.data.get(quote)
        if base_price is None or quote_price is None or quote_price.price <= 0:
            return None
        return base_price.price / quote_price.price


class RoutePlanStep(BaseModel):
    """One hop of a swap route."""

    label: str = ""
    input_mint: str = Field(default="", alias="inputMint")
    output_mint: str = Field(default="", alias="outputMint")

    model_config = {"populate_by_name": True}


class QuoteResponse(BaseModel):
    """Response of the quote endpoint."""

    input_mint: str = Field(alias="inputMint")
    output_mint: str = Field(alias="outputMint")
    in_amount: float = Field(alias="inAmount")
    out_amount: float = Field(alias="outAmount")
    slippage_bps: int = Field(alias="slippageBps")
    price_impact_pct: float = Field(default=0.0, alias="priceImpactPct")
    route_plan: list[RoutePlanStep] = Field(default_factory=list, alias="routePlan")
    quote_id: str = Field(default="", alias="quoteId")

    model_config = {"populate_by_name": True}

    def to_quote(self) -> Quote:
        return Quote(
            input_asset=self.input_mint,
            output_asset=self.output_mint,
            input_amount=self.in_amount,
            output_amount=self.out_amount,
            slippage_bps=self.slippage_bps,
            route=tuple(step.label for step in self.route_plan),
            price_impact_pct=self.price_impact_pct,
            quote_id=self.quote_id,
        )


class SwapResponse(BaseModel):
    """Response of the swap submission endpoint."""

    tx_id: str = Field(alias="txId")

    model_config = {"populate_by_name": True}


class TxStatusResponse(BaseModel):
    """Response of the transaction status endpoints."""

    tx_id: str = Field(alias="txId")
    status: TxStatus
    err: str | None = None

    model_config = {"populate_by_name": True}

    def to_status(self) -> TransactionStatus:
        return TransactionStatus(self.status, self.err or "")


class BalancesResponse(BaseModel):
    """Response of the balances endpoint."""

    account: str
    balances: dict[str, float]

    model_config = {"populate_by_name": True}
