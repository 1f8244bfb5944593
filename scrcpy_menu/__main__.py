"""Entry point for running as a module: python -m scrcpy_menu"""

import logging
import signal
import sys
from typing import Any

from .cli import run_cli

logger = logging.getLogger(__name__)


def signal_handler(sig: int, frame: Any) -> None:
    """Handle termination signals."""
    logger.info("Received signal %s, exiting", sig)
    print("\n👋 Goodbye!")
    sys.exit(0)


def main() -> None:
    """Main entry point."""
    # Ctrl+C is left alone: it has to reach scrcpy while it runs
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        code = run_cli()
    except KeyboardInterrupt:
        code = 0
    print("👋 Goodbye!")
    sys.exit(code)


if __name__ == "__main__":
    main()
