"""
Entry point for the arbitrage monitor.

Usage:
    python -m antares
    antares  # if installed via pip
"""

import asyncio
import sys


# Try to use uvloop for better performance
try:
    import uvloop

    UVLOOP_AVAILABLE = True
except ImportError:
    UVLOOP_AVAILABLE = False


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    from pydantic import ValidationError

    from antares import __version__
    from antares.config.settings import get_settings
    from antares.core.errors import AntaresError
    from antares.core.runner import EngineRunner
    from antares.exchange.client import CoinbaseClientError

    # Print banner
    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     ANTARES CYCLE ARBITRAGE MONITOR v{__version__:<19}      ║
║                                                               ║
║     Live order book cycles on Coinbase Exchange               ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    # Load settings
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Configuration error: {e}")
        print("\nSettings are read from ANTARES_* environment variables or a .env file, e.g.:")
        print("  ANTARES_FEE_RATE=0.006")
        print("  ANTARES_MAX_CYCLE_LEN=4")
        return 1

    uvloop_enabled = UVLOOP_AVAILABLE and settings.use_uvloop

    # Print configuration summary
    print("Configuration:")
    print(f"  Mode:           {'SIMULATION' if settings.simulate else 'LIVE (read-only)'}")
    print(f"  Feed:           {'simulator' if settings.simulate else settings.ws_url}")
    print(f"  Fee rate:       {settings.fee_rate * 100:.3f}% per hop")
    print(f"  Cycle length:   {settings.min_cycle_len}-{settings.max_cycle_len} hops")
    print(f"  Threshold:      x{settings.report_threshold}")
    print(f"  Excluded:       {', '.join(sorted(settings.excluded_currencies)) or 'none'}")
    print(f"  uvloop:         {'Enabled' if uvloop_enabled else 'Disabled'}")
    print()

    # Run the monitor
    async def run_monitor() -> int:
        runner = EngineRunner(settings)

        try:
            await runner.run()
            return 0

        except KeyboardInterrupt:
            print("\nInterrupted by user")
            return 0

        except (AntaresError, CoinbaseClientError) as e:
            print(f"\nFatal error: {e}")
            return 1

        except Exception as e:
            print(f"\nFatal error: {e}")
            import traceback

            traceback.print_exc()
            return 1

        finally:
            await runner.shutdown()

    if uvloop_enabled:
        return uvloop.run(run_monitor())
    return asyncio.run(run_monitor())


if __name__ == "__main__":
    sys.exit(main())
