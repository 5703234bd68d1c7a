"""Bot entry point.

Without a subcommand (and RUN_MODE unset) the Telegram bot runs. The
``zbx-setup`` subcommand, or RUN_MODE=zbx-setup, provisions Zabbix instead.
Exit status is 0 on graceful shutdown and 1 on fatal configuration or
allow-list errors.
"""

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from src.allowlist import AllowList, LoadError
from src.config import ConfigError, Settings
from src.zabbix.client import ZabbixError

logger = logging.getLogger(__name__)

SETUP_MODE = "zbx-setup"


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="zabbixbot", description="Zabbix / Telegram access bot and setup utility"
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser(SETUP_MODE, help="Configure Zabbix media type, user media and action")
    return parser.parse_args(argv)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, level),
    )
    # httpx logs request URLs, which carry the bot token.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _fatal(message: str) -> int:
    print(f"error: {message}", file=sys.stderr)
    return 1


def run_bot(settings: Settings) -> int:
    """Load the allow-list and poll Telegram until shutdown."""
    from src.bot.app import create_app

    settings.require_bot_settings()
    allow_list = AllowList.load(
        settings.allowed_users_path,
        reload_interval=settings.allowed_users_reload_seconds,
    )
    if not allow_list:
        logger.warning("Allow-list %s is empty, /start will deny everyone", allow_list.path)

    logger.info("Starting bot...")
    app = create_app(settings, allow_list)
    app.run_polling()
    return 0


def run_zbx_setup(settings: Settings) -> int:
    """Provision Zabbix for Telegram alerts."""
    from src.zabbix.setup import run_setup

    settings.require_setup_settings()
    asyncio.run(run_setup(settings))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the bot or the setup utility. Returns the process exit code."""
    args = _parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        return _fatal(f"Invalid configuration: {exc}")

    _configure_logging(settings.log_level)

    try:
        if args.command == SETUP_MODE or settings.run_mode == SETUP_MODE:
            return run_zbx_setup(settings)
        return run_bot(settings)
    except ConfigError as exc:
        return _fatal(f"Configuration error: {exc}")
    except LoadError as exc:
        return _fatal(f"Allow-list error ({exc.kind}): {exc}")
    except ZabbixError as exc:
        return _fatal(f"Zabbix setup failed: {exc}")


def run() -> None:
    """Console-script wrapper."""
    sys.exit(main())


if __name__ == "__main__":
    run()
