"""
Live queries - re-deliver a query result whenever the tables it reads change

Writes are detected through SQLAlchemy session events: tables touched by a
flush are collected on the session and dispatched once the transaction
commits. A rolled back transaction notifies nobody.

Usage:
    from moov.services.live_queries import live_queries
    sub = live_queries.subscribe(
        {"watch_logs"},
        lambda db: WatchLogService.get_user_stats(db, "user_123"),
        on_stats,
    )
    ...
    sub.unsubscribe()
"""
import itertools
import logging
import threading
from typing import Any, Callable, Dict, Iterable, Set

from sqlalchemy import event
from sqlalchemy.orm import Session, sessionmaker

from moov.database import SessionLocal

logger = logging.getLogger(__name__)

_PENDING_KEY = "moov_changed_tables"


class Subscription:
    """Handle returned by LiveQueryHub.subscribe"""

    def __init__(self, hub: "LiveQueryHub", sub_id: int, tables: Set[str],
                 fetch: Callable[[Session], Any], callback: Callable[[Any], None]):
        self._hub = hub
        self.id = sub_id
        self.tables = tables
        self.fetch = fetch
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        self.active = False
        self._hub._remove(self.id)


class LiveQueryHub:

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._subscriptions: Dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._listening = False

    # ==================== SUBSCRIPTIONS ====================

    def subscribe(self, tables: Iterable[str], fetch: Callable[[Session], Any],
                  callback: Callable[[Any], None]) -> Subscription:
        """Deliver fetch()'s result now and again after every commit that writes to `tables`"""
        self._ensure_listening()
        sub = Subscription(self, next(self._ids), set(tables), fetch, callback)
        with self._lock:
            self._subscriptions[sub.id] = sub
        self._deliver(sub)
        return sub

    def _remove(self, sub_id: int) -> None:
        with self._lock:
            self._subscriptions.pop(sub_id, None)

    def close(self) -> None:
        """Drop every subscription and stop listening to session events"""
        with self._lock:
            self._subscriptions.clear()
        if self._listening:
            event.remove(Session, "after_flush", self._after_flush)
            event.remove(Session, "after_commit", self._after_commit)
            event.remove(Session, "after_soft_rollback", self._after_rollback)
            self._listening = False

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def _deliver(self, sub: Subscription) -> None:
        if not sub.active:
            return
        db = self._session_factory()
        try:
            result = sub.fetch(db)
        except Exception:
            logger.exception(f"Live query {sub.id} failed to fetch")
            return
        finally:
            db.close()

        try:
            sub.callback(result)
        except Exception:
            logger.exception(f"Live query {sub.id} callback raised")

    # ==================== SESSION EVENTS ====================

    def _ensure_listening(self) -> None:
        if self._listening:
            return
        event.listen(Session, "after_flush", self._after_flush)
        event.listen(Session, "after_commit", self._after_commit)
        event.listen(Session, "after_soft_rollback", self._after_rollback)
        self._listening = True

    @staticmethod
    def _after_flush(session: Session, flush_context) -> None:
        changed = session.info.setdefault(_PENDING_KEY, set())
        for obj in itertools.chain(session.new, session.dirty, session.deleted):
            table = getattr(obj, "__tablename__", None)
            if table:
                changed.add(table)

    def _after_commit(self, session: Session) -> None:
        changed = session.info.pop(_PENDING_KEY, None)
        if not changed:
            return

        with self._lock:
            affected = [sub for sub in self._subscriptions.values() if sub.tables & changed]

        logger.debug(f"Commit touched {sorted(changed)}; refreshing {len(affected)} live queries")
        for sub in affected:
            self._deliver(sub)

    @staticmethod
    def _after_rollback(session: Session, previous_transaction) -> None:
        session.info.pop(_PENDING_KEY, None)


# Global instance
live_queries = LiveQueryHub(SessionLocal)
