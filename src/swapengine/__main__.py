"""
Entry point for the swap engine.

Usage:
    python -m swapengine
    swapengine  # if installed via pip
"""

import asyncio
import sys

from pydantic import ValidationError


def _install_uvloop() -> bool:
    try:
        import uvloop
    except ImportError:
        return False
    uvloop.install()
    return True


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    from swapengine import __version__
    from swapengine.config.settings import ConfigurationError, get_settings
    from swapengine.core.engine import create_engine
    from swapengine.telemetry.logger import setup_logging
    from swapengine.venue.client import VenueUnavailableError

    print(
        f"""
+---------------------------------------------------------------+
|     OPPORTUNISTIC SWAP ENGINE v{__version__:<31}|
|                                                               |
|     Momentum trading through a swap aggregator                |
+---------------------------------------------------------------+
    """
    )

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Configuration error: {e}")
        print("\nMake sure you have a .env file with:")
        print("  WALLET_ADDRESS=your_account_address")
        print("  WALLET_SECRET=your_signing_secret")
        return 1

    uvloop_enabled = settings.use_uvloop and _install_uvloop()

    print("Configuration:")
    print(f"  Mode:           {'DRY RUN' if settings.dry_run else 'LIVE TRADING'}")
    print(f"  Venue:          {'Simulated' if settings.dry_run else settings.venue_url}")
    print(f"  Base asset:     {settings.base_asset}")
    print(f"  Pairs:          {len(settings.trading_pairs)}")
    print(f"  Threshold:      {settings.min_movement_threshold:.3f}% "
          f"[{settings.threshold_min:.3f}, {settings.threshold_max:.3f}]")
    print(f"  Max slippage:   {settings.max_slippage_bps}bps")
    print(f"  Max concurrent: {settings.max_concurrent_trades}")
    print(f"  uvloop:         {'Enabled' if uvloop_enabled else 'Disabled'}")
    print()

    if not settings.dry_run:
        print("WARNING: Live trading mode enabled!")
        print("    Real swaps will be signed and submitted.")
        print()

    pipeline = setup_logging(level=settings.log_level, log_file=settings.log_file)

    async def run_engine() -> int:
        try:
            async with create_engine(settings) as engine:
                await engine.run()
            return 0

        except ConfigurationError as e:
            print(f"\nConfiguration error: {e}")
            return 1

        except VenueUnavailableError as e:
            print(f"\nVenue unavailable: {e}")
            return 2

    try:
        return asyncio.run(run_engine())
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 0
    finally:
        pipeline.stop()


if __name__ == "__main__":
    sys.exit(main())
