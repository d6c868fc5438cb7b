"""
Asset classification and base-asset valuation.

Converts amounts of any tracked asset into base-asset units using the
latest pair prices, and maps assets onto risk classes.
"""

from swapengine.core.types import AssetClass
from swapengine.utils.math import safe_divide


class AssetClassifier:
    """Maps asset symbols to risk classes."""

    def __init__(
        self,
        base_asset: str,
        stable_assets: list[str] | tuple[str, ...] = (),
        major_assets: list[str] | tuple[str, ...] = (),
        volatile_assets: list[str] | tuple[str, ...] = (),
    ) -> None:
        self._base_asset = base_asset
        self._stable = frozenset(stable_assets)
        self._major = frozenset(major_assets)
        self._volatile = frozenset(volatile_assets)

    @property
    def base_asset(self) -> str:
        return self._base_asset

    def classify(self, asset: str) -> AssetClass:
        """Get the class of an asset; unlisted assets are UNKNOWN."""
        if asset == self._base_asset:
            return AssetClass.BASE
        if asset in self._stable:
            return AssetClass.STABLE
        if asset in self._major:
            return AssetClass.MAJOR
        if asset in self._volatile:
            return AssetClass.VOLATILE
        return AssetClass.UNKNOWN

    def is_base(self, asset: str) -> bool:
        return asset == self._base_asset

    def is_stable(self, asset: str) -> bool:
        return asset in self._stable


class AssetValuator:
    """
    Values asset amounts in base-asset units.

    Looks for a direct pair against the base asset in either direction.
    """

    def __init__(self, base_asset: str) -> None:
        self._base_asset = base_asset

    def price_in_base(self, asset: str, prices: dict[str, float]) -> float | None:
        """
        Base units per one unit of asset.

        Args:
            asset: Asset symbol.
            prices: Pair name -> price (quote per base).

        Returns:
            Price in base units, or None if no pair links the asset to base.
        """
        if asset == self._base_asset:
            return 1.0

        direct = prices.get(f"{asset}/{self._base_asset}")
        if direct and direct > 0:
            return direct

        inverse = prices.get(f"{self._base_asset}/{asset}")
        if inverse and inverse > 0:
            return safe_divide(1.0, inverse)

        return None

    def value_in_base(self, asset: str, amount: float, prices: dict[str, float]) -> float | None:
        """Value of `amount` units of asset in base units, or None if unpriced."""
        price = self.price_in_base(asset, prices)
        if price is None:
            return None
        return amount * price
