"""Database layer for persisted preferences and the last loaded feed."""

from __future__ import annotations

import hashlib
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    func,
    or_,
    select,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .models import Feed, Header, Post

logger = logging.getLogger(__name__)

EXPIRATION_KEY = "hardcoded_data_expiration"


class Base(DeclarativeBase):
    pass


class PreferenceModel(Base):
    """Integer-valued persisted preference."""

    __tablename__ = "preferences"

    key = Column(String, primary_key=True)
    value = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))


class CachedEntryModel(Base):
    """One entry of the most recently loaded feed."""

    __tablename__ = "cached_entries"

    position = Column(Integer, primary_key=True)
    kind = Column(String, nullable=False)
    section = Column(String, nullable=True)
    content = Column(Text, nullable=False)
    article_id = Column(String, nullable=True, index=True)
    cached_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))


def init_engine(connection_string: Optional[str]) -> Optional[Engine]:
    """Initialize the database engine."""
    if not connection_string:
        return None

    logger.info("Initializing database connection: %s", connection_string)
    database = make_url(connection_string).database
    if connection_string.startswith("sqlite") and database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(connection_string)
    Base.metadata.create_all(engine)
    return engine


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory for the given engine."""
    return sessionmaker(bind=engine)


def article_id(section: str, text: str) -> str:
    """Stable name-based identifier for a post within its section."""
    digest = hashlib.md5(f"{section}-{text}".encode("utf-8")).digest()
    return str(uuid.UUID(bytes=digest, version=3))


def get_preference(session: Session, key: str, default: int = 0) -> int:
    row = session.get(PreferenceModel, key)
    if row is None:
        return default
    return int(row.value)


def set_preference(session: Session, key: str, value: int) -> None:
    row = session.get(PreferenceModel, key)
    if row is None:
        session.add(PreferenceModel(key=key, value=value))
    else:
        row.value = value
        row.updated_at = datetime.now(timezone.utc)

    try:
        session.commit()
    except Exception:
        session.rollback()
        raise


class PreferencesStore:
    """Preference access handed to the freshness gate at construction.

    Reads go straight to the database; writes are serialised so the
    first-run initialisation happens exactly once.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory
        self._write_lock = threading.Lock()

    def get_expiration(self) -> int:
        with self._session_factory() as session:
            return get_preference(session, EXPIRATION_KEY, 0)

    def set_expiration(self, value: int) -> None:
        with self._write_lock, self._session_factory() as session:
            set_preference(session, EXPIRATION_KEY, value)

    def initialize_expiration(self, now: int, window_ms: int) -> int:
        """Write ``now + window_ms`` unless an expiration is already stored."""
        with self._write_lock, self._session_factory() as session:
            current = get_preference(session, EXPIRATION_KEY, 0)
            if current > 0:
                return current
            expiration = now + window_ms
            set_preference(session, EXPIRATION_KEY, expiration)
            logger.info("Fallback feed expiration initialised to %d", expiration)
            return expiration

    def clear(self) -> None:
        with self._write_lock, self._session_factory() as session:
            session.execute(delete(PreferenceModel))
            session.commit()


def save_feed(session: Session, feed: Feed) -> int:
    """Replace the cached feed with ``feed``; returns the number of rows written."""
    now = datetime.now(timezone.utc)
    section: Optional[str] = None
    rows: List[CachedEntryModel] = []
    for position, entry in enumerate(feed):
        if isinstance(entry, Header):
            section = entry.text
            rows.append(
                CachedEntryModel(
                    position=position,
                    kind=entry.kind,
                    section=section,
                    content=entry.text,
                    cached_at=now,
                )
            )
        else:
            rows.append(
                CachedEntryModel(
                    position=position,
                    kind=entry.kind,
                    section=section,
                    content=entry.html,
                    article_id=article_id(section or "", entry.text),
                    cached_at=now,
                )
            )

    try:
        session.execute(delete(CachedEntryModel))
        session.add_all(rows)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.debug("Saved %d entries to the feed cache", len(rows))
    return len(rows)


def _to_feed(rows) -> Feed:
    entries = []
    for row in rows:
        if row.kind == "header":
            entries.append(Header(row.content))
        else:
            entries.append(Post(row.content))
    return Feed(entries)


def load_feed(session: Session) -> Feed:
    """Return the cached feed, empty when nothing has been cached."""
    stmt = select(CachedEntryModel).order_by(CachedEntryModel.position)
    return _to_feed(session.execute(stmt).scalars().all())


def count_posts(session: Session) -> int:
    stmt = (
        select(func.count())
        .select_from(CachedEntryModel)
        .where(CachedEntryModel.kind == "post")
    )
    return int(session.execute(stmt).scalar_one())


def clear_feed(session: Session) -> None:
    try:
        session.execute(delete(CachedEntryModel))
        session.commit()
    except Exception:
        session.rollback()
        raise


def delete_expired(session: Session, before: datetime) -> int:
    """Remove cached entries older than ``before``."""
    try:
        result = session.execute(
            delete(CachedEntryModel).where(CachedEntryModel.cached_at < before)
        )
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.debug("Deleted %d cached entries older than %s", result.rowcount, before)
    return result.rowcount


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_posts(session: Session, query: str) -> Feed:
    """Cached posts matching ``query`` in their markup or section name.

    Matching is case-insensitive and literal; results are grouped under their
    section headers.
    """
    if not query or not query.strip():
        return Feed()

    pattern = f"%{_escape_like(query.strip().lower())}%"
    stmt = (
        select(CachedEntryModel)
        .where(
            CachedEntryModel.kind == "post",
            or_(
                func.lower(CachedEntryModel.content).like(pattern, escape="\\"),
                func.lower(CachedEntryModel.section).like(pattern, escape="\\"),
            ),
        )
        .order_by(CachedEntryModel.position)
    )
    matches = session.execute(stmt).scalars().all()

    grouped: Dict[Optional[str], List[Post]] = {}
    for row in matches:
        grouped.setdefault(row.section, []).append(Post(row.content))

    entries = []
    for section, posts in grouped.items():
        if section is not None:
            entries.append(Header(section))
        entries.extend(posts)
    logger.debug("Search for %r matched %d posts", query, len(matches))
    return Feed(entries)
