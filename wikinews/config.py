"""Configuration loading for wikinews."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

from .links import DEFAULT_ORIGIN
from .transport import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, PORTAL_URL

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("json", "text", "html")


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class DatabaseConfig:
    enabled: bool = False
    connection_string: Optional[str] = None
    max_age_days: Optional[float] = None


@dataclass
class AppConfig:
    url: str = PORTAL_URL
    origin: str = DEFAULT_ORIGIN
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    fallback_days: float = 7.0
    workers: int = 2
    output_format: str = "text"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def _resolve_connection_string(base_path: Path, value: str) -> str:
    """Make relative SQLite file paths relative to the config file."""
    prefix = "sqlite:///"
    if value.startswith(prefix):
        db_path = value[len(prefix):]
        if db_path and db_path != ":memory:" and not Path(db_path).is_absolute():
            return prefix + _resolve_path(base_path, db_path)
    return value


def _number(root: ET.Element, tag: str, default, cast):
    raw = root.findtext(tag)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid value for <{tag}>: {raw!r}") from exc


def parse_app_config(path: str) -> AppConfig:
    """Parse the application configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    tree = ET.parse(config_path)
    root = tree.getroot()

    config = AppConfig()
    config.url = (root.findtext("url") or PORTAL_URL).strip()
    config.origin = (root.findtext("origin") or DEFAULT_ORIGIN).strip()
    config.user_agent = (root.findtext("user-agent") or DEFAULT_USER_AGENT).strip()
    config.timeout = _number(root, "timeout", DEFAULT_TIMEOUT, float)
    config.fallback_days = _number(root, "fallback-days", 7.0, float)
    config.workers = _number(root, "workers", 2, int)
    if config.timeout <= 0:
        raise ValueError("<timeout> must be positive.")
    if config.workers < 1:
        raise ValueError("<workers> must be at least 1.")

    output_format = (root.findtext("format") or "text").strip().lower()
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format: {output_format}")
    config.output_format = output_format

    # Database
    db_node = root.find("database")
    if db_node is not None:
        config.database.enabled = (
            db_node.findtext("enabled", "false").strip().lower() == "true"
        )
        connection_string = db_node.findtext("connection-string")
        if connection_string:
            config.database.connection_string = _resolve_connection_string(
                config_path, connection_string.strip()
            )
        config.database.max_age_days = _number(db_node, "max-age-days", None, float)
        if config.database.max_age_days is not None and config.database.max_age_days <= 0:
            raise ValueError("<max-age-days> must be positive.")

    # Logging
    log_node = root.find("logging")
    if log_node is not None:
        config.logging.level = log_node.findtext("level", "INFO").strip()
        log_file = log_node.findtext("file")
        if log_file:
            config.logging.file = _resolve_path(config_path, log_file.strip())

    return config
