"""Grammar Detector - Entry Point"""

import asyncio
import os
import sys

from grammar_detector.core.config.container import setup_container
from grammar_detector.core.exceptions import ContainerInitializationError
from grammar_detector.core.logging.logger import (
    DEFAULT_LOG_FILE,
    bind_context,
    setup_dev_logging,
    setup_production_logging
)

# Načti mode z env (default: production)
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"
LOG_FILE = os.getenv("GRAMMAR_DETECTOR_LOG_FILE", DEFAULT_LOG_FILE)

# Setup logging PŘED vším ostatním
if DEV_MODE:
    setup_dev_logging(LOG_FILE)
else:
    setup_production_logging(LOG_FILE)


async def main():
    """Build the pipeline and hand the terminal to the console UI"""
    container = setup_container()
    bind_context(
        lang=container.detector_config.lang,
        policy=container.detector_config.selection_policy.value,
        engine=container.engine.name
    )
    await container.console_ui.run()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except ContainerInitializationError as e:
        print(f"\n❌ {e}\n", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\n👋 Goodbye!\n")
