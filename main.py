#!/usr/bin/env python3
"""
Main entry point for the Toolkit Core chat bridge
"""

import asyncio
import logging
import signal
import sys

from toolkit_core.app import ToolkitApplication
from toolkit_core.config.core import load_settings, resolve_settings_path
from toolkit_core.errors.handling import log_error
from toolkit_core.logging_config import LoggerConfigurator


def health_check() -> int:
    """Validate settings and credentials without connecting."""
    logging.info("🏥 Health check mode")
    settings = load_settings(resolve_settings_path())
    reason = settings.credentials().validation_error()
    if reason is None and not settings.channel_username:
        reason = "channel name is empty"
    if reason:
        logging.error(f"❌ Health check failed: {reason}")
        return 1
    logging.info(f"✅ Health check passed - channel={settings.channel_username}")
    return 0


async def main(configurator: LoggerConfigurator) -> None:
    """Run the application until SIGINT/SIGTERM."""
    app = ToolkitApplication.create(logger_configurator=configurator)
    if app.settings.debug_logging:
        configurator.set_debug(True)
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass
    await app.run(stop_event)


if __name__ == "__main__":
    configurator = LoggerConfigurator()
    configurator.configure()

    if len(sys.argv) > 1 and sys.argv[1] == "--health-check":
        sys.exit(health_check())

    try:
        asyncio.run(main(configurator))
    except KeyboardInterrupt:
        sys.exit(0)
    except Exception as e:  # noqa: BLE001
        log_error("Top-level error", e)
        sys.exit(1)
