"""Command-line interface for the wikinews application."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pprint
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import requests

from . import db
from .config import OUTPUT_FORMATS, AppConfig, parse_app_config
from .controller import FeedController, load_cached_feed, prune_cache
from .extractor import SectionExtractor
from .freshness import FreshnessGate
from .models import Content, Error
from .renderers import render
from .transport import HttpTransport

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Fetch and print Wikipedia's current events feed."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the configuration XML file (built-in defaults when omitted).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format. Overrides config.",
    )
    parser.add_argument(
        "--cached",
        action="store_true",
        help="Print the feed cached by the last successful load without fetching.",
    )
    parser.add_argument(
        "--search",
        metavar="QUERY",
        help="Search posts of the cached feed.",
    )
    return parser


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Route root logging to the console and, optionally, to ``log_file``."""
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )
    logger.debug(
        "Logging at %s to %s",
        level_name.upper(),
        log_file or "the console only",
    )


def build_controller(
    app_config: AppConfig,
    session_factory=None,
    http_session: Optional[requests.Session] = None,
) -> FeedController:
    """Wire transport, extractor and freshness gate from configuration."""
    if http_session is None:
        http_session = requests.Session()
    gate = None
    if session_factory is not None:
        gate = FreshnessGate(
            db.PreferencesStore(session_factory),
            window=timedelta(days=app_config.fallback_days),
        )
        gate.ensure_expiration()

    return FeedController(
        transport=HttpTransport(
            http_session,
            timeout=app_config.timeout,
            user_agent=app_config.user_agent,
        ),
        extractor=SectionExtractor(origin=app_config.origin),
        gate=gate,
        url=app_config.url,
        session_factory=session_factory,
        workers=app_config.workers,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = parse_app_config(args.config) if args.config else AppConfig()

        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file
        configure_logging(log_level, log_file)

        output_format = args.format or app_config.output_format

        config_dict = dataclasses.asdict(app_config)
        if config_dict["database"].get("connection_string"):
            config_dict["database"]["connection_string"] = "***MASKED***"
        logger.info("Active Configuration:\n%s", pprint.pformat(config_dict))

        session_factory = None
        if app_config.database.enabled:
            engine = db.init_engine(app_config.database.connection_string)
            if engine is None:
                logger.warning(
                    "Database enabled but no connection string provided. Caching disabled."
                )
            else:
                session_factory = db.get_session_factory(engine)

        if args.cached or args.search:
            if session_factory is None:
                raise RuntimeError("--cached and --search require an enabled database.")
            if app_config.database.max_age_days is not None:
                prune_cache(
                    session_factory, timedelta(days=app_config.database.max_age_days)
                )
            if args.search:
                with session_factory() as session:
                    feed = db.search_posts(session, args.search)
            else:
                feed = load_cached_feed(session_factory)
            print(render(feed, output_format))
            return 0

        with requests.Session() as http_session, build_controller(
            app_config, session_factory, http_session
        ) as controller:
            state = controller.start_load().result()
    except ValueError as exc:
        parser.error(str(exc))
    except (RuntimeError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    if isinstance(state, Error):
        logger.error("%s", state.message)
        return 1

    assert isinstance(state, Content)
    print(render(state.feed, output_format))
    return 0
