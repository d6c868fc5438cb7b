"""
HMAC-SHA256 signing of swap intents.

A quote is serialized canonically with orjson and signed once; every
submission retry reuses the same SignedIntent.
"""

import hashlib
import hmac

import orjson

from swapengine.core.types import Quote, SignedIntent
from swapengine.utils.time import get_timestamp


class IntentSigner:
    """
    Signs swap quotes for the trading account.

    Uses HMAC-SHA256 over the canonical intent payload.
    """

    __slots__ = ("_account", "_secret_bytes")

    def __init__(self, account: str, secret: str) -> None:
        """
        Initialize signer.

        Args:
            account: Public account address.
            secret: Signing secret.

        Raises:
            ValueError: If account or secret is empty.
        """
        if not account:
            raise ValueError("Signer account cannot be empty")
        if not secret:
            raise ValueError("Signer secret cannot be empty")
        self._account = account
        # Pre-encode secret for faster HMAC computation
        self._secret_bytes = secret.encode("utf-8")

    @property
    def account(self) -> str:
        return self._account

    @staticmethod
    def payload(quote: Quote, account: str, timestamp: float) -> bytes:
        """Canonical byte payload of an intent."""
        return orjson.dumps(
            {
                "account": account,
                "inAmount": quote.input_amount,
                "inputMint": quote.input_asset,
                "outAmount": quote.output_amount,
                "outputMint": quote.output_asset,
                "quoteId": quote.quote_id,
                "slippageBps": quote.slippage_bps,
                "timestamp": timestamp,
            },
            option=orjson.OPT_SORT_KEYS,
        )

    def sign_bytes(self, payload: bytes) -> str:
        """
        Generate HMAC-SHA256 signature for a payload.

        Returns:
            Hexadecimal signature string.
        """
        return hmac.new(self._secret_bytes, payload, hashlib.sha256).hexdigest()

    def sign(self, quote: Quote) -> SignedIntent:
        """Bind a quote to the account and sign it."""
        timestamp = get_timestamp()
        signature = self.sign_bytes(self.payload(quote, self._account, timestamp))
        return SignedIntent(quote=quote, account=self._account, signature=signature, timestamp=timestamp)

    def verify(self, intent: SignedIntent) -> bool:
        """Check an intent's signature."""
        expected = self.sign_bytes(self.payload(intent.quote, intent.account, intent.timestamp))
        return hmac.compare_digest(expected, intent.signature)
