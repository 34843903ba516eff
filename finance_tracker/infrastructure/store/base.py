"""Owner-bound live store adapter"""

import logging
from contextlib import contextmanager
from functools import partial
from typing import Any, Callable, Iterator, List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from finance_tracker.domain.exceptions import NotAuthenticatedError, StoreError
from finance_tracker.infrastructure.store.hub import SnapshotHub, Subscription, hub as default_hub


class LiveStore:
    """
    Holds the current snapshot of one owner's collections.

    The subscriptions are a scoped resource: bind() releases whatever was held
    for the previous owner before subscribing for the new one, and close() (or
    leaving the `with` block) releases them unconditionally.
    """

    collections: Tuple[str, ...] = ()

    def __init__(
        self,
        session_factory: sessionmaker,
        owner_id: Optional[str] = None,
        hub: SnapshotHub | None = None,
    ):
        self._session_factory = session_factory
        self._hub = hub or default_hub
        self._subscriptions: List[Subscription] = []
        self._pending: set = set()
        self._delivered: set = set()
        self.owner_id: Optional[str] = None
        self.error: Optional[str] = None
        self._reset()
        if owner_id:
            self.bind(owner_id)

    @property
    def loading(self) -> bool:
        return bool(self._pending)

    @property
    def synced(self) -> bool:
        """Every collection has delivered at least one snapshot"""
        return self.owner_id is not None and self._delivered >= set(self.collections)

    def bind(self, owner_id: Optional[str]) -> None:
        self.release()
        self._reset()
        self.owner_id = owner_id
        self.error = None
        if not owner_id:
            return

        self._pending = set(self.collections)
        for collection in self.collections:
            self._subscriptions.append(
                self._hub.subscribe(
                    collection,
                    owner_id,
                    loader=partial(self._load, collection, owner_id),
                    on_snapshot=partial(self._deliver, collection),
                    on_error=partial(self._fail, collection),
                )
            )

    def release(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        self._pending = set()
        self._delivered = set()

    def close(self) -> None:
        self.release()
        self.owner_id = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # Subclass hooks

    def _reset(self) -> None:
        """Drop every held list"""
        raise NotImplementedError

    def _query(self, db: Session, collection: str, owner_id: str) -> List[Any]:
        raise NotImplementedError

    def _apply(self, collection: str, snapshot: List[Any]) -> None:
        raise NotImplementedError

    # Snapshot plumbing

    def _load(self, collection: str, owner_id: str) -> List[Any]:
        db = self._session_factory()
        try:
            return self._query(db, collection, owner_id)
        except SQLAlchemyError as e:
            logging.error(f"Error fetching {collection}: {e}", extra={"owner_id": owner_id})
            raise StoreError(f"Failed to load {collection.replace('_', ' ')}") from e
        finally:
            db.close()

    def _deliver(self, collection: str, snapshot: List[Any]) -> None:
        self._apply(collection, snapshot)
        self._pending.discard(collection)
        self._delivered.add(collection)

    def _fail(self, collection: str, message: str) -> None:
        # Keep the last-known list
        self.error = message
        self._pending.discard(collection)

    def _require_owner(self) -> str:
        if not self.owner_id:
            raise NotAuthenticatedError("User not authenticated")
        return self.owner_id

    @contextmanager
    def _write(self, collection: str, failure_message: str) -> Iterator[Session]:
        """Session for one mutation; commits, then publishes the new snapshot"""
        owner_id = self._require_owner()
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            self.error = failure_message
            logging.error(f"{failure_message}: {e}", extra={"owner_id": owner_id})
            raise StoreError(failure_message) from e
        finally:
            db.close()
        self._hub.publish(collection, owner_id)

    def _read_one(self, fetch: Callable[[Session, str], Any], convert: Callable[[Any], Any]) -> Any:
        """Single owned record straight from the database, for lookups the snapshot cannot answer yet"""
        owner_id = self._require_owner()
        db = self._session_factory()
        try:
            record = fetch(db, owner_id)
            return convert(record) if record is not None else None
        except SQLAlchemyError as e:
            logging.error(f"Error reading record: {e}", extra={"owner_id": owner_id})
            raise StoreError("Failed to read record") from e
        finally:
            db.close()
