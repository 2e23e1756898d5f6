# classes/link_store.py

import logging
import secrets
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from classes.entities import Base, Link
from classes.errors import ShortLinkError

logger = logging.getLogger("sitedrop_backend")

SLUG_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
MIN_SLUG_LENGTH = 6


def generate_slug(length: int = MIN_SLUG_LENGTH) -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class ShortLink:
    slug: str
    short_url: str


class LinkStore:
    """
    slug -> destination URL, backed by the `link` table.

    create_short_link() tries a 6-char slug, then 7, 8, ... for up to
    `max_retries` attempts; only a UNIQUE violation triggers another attempt.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        base_url: str,
        *,
        max_retries: int = 5,
        slug_factory: Callable[[int], str] = generate_slug,
    ):
        self.SessionFactory = session_factory
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self._slug_factory = slug_factory

    @property
    def max_slug_length(self) -> int:
        return MIN_SLUG_LENGTH + self.max_retries - 1

    def create_tables(self) -> None:
        Base.metadata.create_all(self.SessionFactory.kw["bind"])

    def short_url_for(self, slug: str) -> str:
        return f"{self.base_url}/s/{slug}"

    def create_short_link(self, long_url: str) -> ShortLink:
        for attempt in range(self.max_retries):
            slug = self._slug_factory(MIN_SLUG_LENGTH + attempt)
            session: Session = self.SessionFactory()
            try:
                session.add(Link(slug=slug, long_url=long_url))
                session.commit()
                return ShortLink(slug=slug, short_url=self.short_url_for(slug))
            except IntegrityError:
                session.rollback()
                logger.info(f"Slug collision on '{slug}' (attempt {attempt + 1}/{self.max_retries})")
                continue
            finally:
                session.close()

        raise ShortLinkError(f"Failed to generate unique slug after {self.max_retries} attempts")

    def get_long_url(self, slug: str) -> Optional[str]:
        session: Session = self.SessionFactory()
        try:
            return session.execute(
                select(Link.long_url).where(Link.slug == slug)
            ).scalar_one_or_none()
        finally:
            session.close()

    def ping(self) -> bool:
        session: Session = self.SessionFactory()
        try:
            session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database ping failed: {e}")
            return False
        finally:
            session.close()
