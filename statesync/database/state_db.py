"""
Per-user state document store.

Each account owns at most one opaque JSON document, keyed by the account's
correlation id. Writes fully replace the previous payload (last write wins);
the store never inspects or merges the payload.
"""
import json
import logging
from typing import Any, Optional, Tuple
from datetime import datetime, timezone

from sqlalchemy import text

from .connection import Database
from ..errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class StateStore:
    """
    Last-write-wins store for user state documents.

    Example usage:
        store = StateStore(db)
        store.sync(account["correlation_id"], {"x": 1})
        store.load(account["correlation_id"])  # {"x": 1}
    """

    def __init__(self, db: Database):
        self.db = db

    def load_document(self, correlation_id: str) -> Tuple[Any, datetime]:
        """
        Load the payload and its last_updated timestamp in one read.

        Raises:
            NotFoundError: If no document has been synced yet.
        """
        with self.db.get_session() as session:
            row = session.execute(
                text("""
                    SELECT payload, last_updated FROM state_documents
                    WHERE owner_correlation_id = :owner
                """),
                {"owner": correlation_id}
            ).fetchone()

        if row is None:
            raise NotFoundError("No state data available")
        return json.loads(row[0]), row[1]

    def load(self, correlation_id: str) -> Any:
        """
        Load the payload for an owner.

        Raises:
            NotFoundError: If no document has been synced yet.
        """
        payload, _ = self.load_document(correlation_id)
        return payload

    def last_updated(self, correlation_id: str) -> Optional[datetime]:
        """Timestamp of the last sync, or None if nothing was synced."""
        with self.db.get_session() as session:
            row = session.execute(
                text("""
                    SELECT last_updated FROM state_documents
                    WHERE owner_correlation_id = :owner
                """),
                {"owner": correlation_id}
            ).fetchone()
        return row[0] if row else None

    def sync(self, correlation_id: str, payload: Any) -> datetime:
        """
        Replace the owner's document with payload, creating it if absent.

        This is one conditional upsert statement, so two concurrent syncs for
        the same owner cannot both create a row; the later write wins.

        Returns:
            The new last_updated timestamp.

        Raises:
            ValidationError: If the payload holds NaN or Infinity, which have
                             no JSON representation.
        """
        try:
            serialized = json.dumps(payload, allow_nan=False)
        except ValueError:
            raise ValidationError("State data must not contain NaN or Infinity")

        now = datetime.now(timezone.utc)
        with self.db.get_session() as session:
            session.execute(
                text("""
                    INSERT INTO state_documents (owner_correlation_id, payload, last_updated)
                    VALUES (:owner, :payload, :now)
                    ON CONFLICT (owner_correlation_id)
                    DO UPDATE SET payload = excluded.payload,
                                  last_updated = excluded.last_updated
                """),
                {"owner": correlation_id, "payload": serialized, "now": now}
            )
        logger.debug(f"Synced state for {correlation_id}")
        return now
