"""SQL item store (SQLAlchemy)."""

from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from reviewgate.core.errors import UpstreamError
from reviewgate.core.logger import get_logger
from reviewgate.db.models import ItemEntry
from reviewgate.db.session import make_session_factory
from .base import ItemStore

logger = get_logger("sql_store")


class SqlItemStore(ItemStore):
    """Stores values in the ``item_entries`` table, one short session per call."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        session_factory: Optional[sessionmaker] = None,
    ):
        if session_factory is None:
            if not database_url:
                raise ValueError("SqlItemStore requires database_url or session_factory")
            session_factory = make_session_factory(database_url)
        self._session_factory = session_factory

    @property
    def store_name(self) -> str:
        return "sql"

    def get(self, key: str) -> Optional[Any]:
        try:
            with self._session_factory() as db:
                entry = db.get(ItemEntry, key)
                return entry.value if entry else None
        except SQLAlchemyError as e:
            raise UpstreamError(f"Store GET failed: {e}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            with self._session_factory() as db:
                db.merge(ItemEntry(key=key, value=value))
                db.commit()
        except SQLAlchemyError as e:
            raise UpstreamError(f"Store SET failed: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with self._session_factory() as db:
                entry = db.get(ItemEntry, key)
                if entry is not None:
                    db.delete(entry)
                    db.commit()
        except SQLAlchemyError as e:
            raise UpstreamError(f"Store DELETE failed: {e}") from e

    def ping(self) -> bool:
        try:
            with self._session_factory() as db:
                db.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database ping failed: {e}")
            return False
