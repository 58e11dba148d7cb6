"""Main CLI entry point: validate arguments, open the session, run the viewer."""

import sys
from typing import List, Optional

from threadview.core.cache import InMemoryCache
from threadview.core.jmap.client import JmapClient
from threadview.core.sync import SyncEngine
from threadview.tui.app import ThreadviewApp
from threadview.tui.session import ViewerSession
from threadview.utils.config import AppConfig, ConfigManager
from threadview.utils.console import get_console
from threadview.utils.errors import ThreadviewError, UsageError, format_error_message
from threadview.utils.logging import get_logger, init_logging

from .cli_parser import USAGE, Credentials, setup_argument_parser, split_credentials

logger = get_logger(__name__)


def load_config(args) -> AppConfig:
    """Read the config file and apply command-line overrides."""
    manager = ConfigManager(args.config)
    if args.log_level:
        manager.set_config("logging.log_level", args.log_level, persist=False)
    if args.interval is not None:
        manager.set_config("refresh.interval_seconds", args.interval, persist=False)
    if args.page_size is not None:
        manager.set_config("refresh.query_page_size", args.page_size, persist=False)
    return manager.config


def open_engine(credentials: Credentials, config: AppConfig) -> SyncEngine:
    """Connect and resolve the primary mail account; raises on failure."""
    session_url = credentials.session_url or config.account.session_url
    client = JmapClient(
        credentials.username,
        credentials.password,
        session_url,
        timeout=config.account.network_timeout,
    )
    try:
        account_id = client.primary_account()
    except Exception:
        client.close()
        raise
    logger.info(f"Using account {account_id}")
    return SyncEngine(
        client,
        InMemoryCache(),
        account_id,
        page_size=config.refresh.query_page_size,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 = success, 1 = startup failure)
    """
    console = get_console()
    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    try:
        credentials = split_credentials(args.credentials)
    except UsageError as e:
        print(f"usage: {USAGE}", file=sys.stderr)
        console.print(f"[red]{e.message}[/red]")
        return 1

    try:
        config = load_config(args)
        init_logging(
            config.logging.log_level,
            max_bytes=config.logging.max_file_size,
            backup_count=config.logging.backup_count,
        )
    except (ThreadviewError, ValueError) as e:
        console.print(f"[red]Configuration error: {format_error_message(e)}[/red]")
        return 1

    try:
        engine = open_engine(credentials, config)
    except ThreadviewError as e:
        logger.error(f"Could not find primary email account: {e.message}")
        console.print(f"[red]Could not find primary email account: {e.message}[/red]")
        return 1

    session = ViewerSession(engine, engine.cache, config)
    try:
        ThreadviewApp(session).run()
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        logger.exception(f"Unable to run terminal UI: {e}")
        console.print(f"[red]Unable to create terminal: {e}[/red]")
        return 1
    finally:
        session.stop()

    return 0
