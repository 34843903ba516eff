"""Live owner-scoped snapshots over the record store"""

import threading
from typing import Any, Callable, Dict, List, Optional, Tuple
from finance_tracker.domain.exceptions import StoreError

TRANSACTIONS = "transactions"
SAVINGS_TRANSACTIONS = "savings_transactions"
SAVINGS_GOALS = "savings_goals"

Loader = Callable[[], List[Any]]
SnapshotCallback = Callable[[List[Any]], None]
ErrorCallback = Callable[[str], None]


class Subscription:
    """Handle for one live query; refresh() redelivers the full result set"""

    def __init__(
        self,
        hub: "SnapshotHub",
        key: Tuple[str, str],
        loader: Loader,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ):
        self.hub = hub
        self.key = key
        self._loader = loader
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self.active = True

    def refresh(self) -> None:
        if not self.active:
            return
        try:
            snapshot = self._loader()
        except StoreError as e:
            self._on_error(str(e))
            return
        self._on_snapshot(snapshot)

    def unsubscribe(self) -> None:
        """Idempotent"""
        if self.active:
            self.active = False
            self.hub._remove(self)


class SnapshotHub:
    """
    Fan-out of (collection, owner) snapshots to live subscribers.

    A subscriber receives the complete current result set once when it
    subscribes and again after every committed mutation published for its
    collection and owner. There is no incremental diffing: every delivery
    replaces whatever the subscriber held before.
    """

    def __init__(self):
        self._subscriptions: Dict[Tuple[str, str], List[Subscription]] = {}
        # Guards _subscriptions only; loaders and callbacks run outside it
        self._lock = threading.Lock()

    def subscribe(
        self,
        collection: str,
        owner_id: str,
        loader: Loader,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        key = (collection, owner_id)
        subscription = Subscription(self, key, loader, on_snapshot, on_error)
        with self._lock:
            self._subscriptions.setdefault(key, []).append(subscription)
        subscription.refresh()
        return subscription

    def publish(self, collection: str, owner_id: str) -> None:
        """Redeliver snapshots to everyone watching this collection for this owner"""
        with self._lock:
            subscriptions = list(self._subscriptions.get((collection, owner_id), []))
        for subscription in subscriptions:
            subscription.refresh()

    def subscriber_count(self, collection: Optional[str] = None, owner_id: Optional[str] = None) -> int:
        with self._lock:
            entries = [(key, len(subs)) for key, subs in self._subscriptions.items()]
        return sum(
            count
            for (coll, owner), count in entries
            if (collection is None or coll == collection) and (owner_id is None or owner == owner_id)
        )

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subs = self._subscriptions.get(subscription.key, [])
            if subscription in subs:
                subs.remove(subscription)
            if not subs:
                self._subscriptions.pop(subscription.key, None)


hub = SnapshotHub()
