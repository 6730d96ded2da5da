"""
Comparison set management.

Holds the schools, courses and tutors a user has queued for side-by-side
comparison. Each type is capped independently; a full type rejects new adds
rather than evicting old ones. Every mutation is written through to the
persisted store so the set survives navigation and reloads.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Tuple, Union

from pydantic import ValidationError

from .config import Settings
from .schemas import AddResult, ComparisonItem, ComparisonItemType, RejectionReason
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

MAX_ITEMS_PER_TYPE = 4

TYPE_NAMES_DE = {
    ComparisonItemType.SCHOOL: "Schulen",
    ComparisonItemType.COURSE: "Kurse",
    ComparisonItemType.TUTOR: "Tutoren",
}

ItemType = Union[ComparisonItemType, str]
Subscriber = Callable[[Tuple[ComparisonItem, ...]], None]


def capacity_message(item_type: ItemType, max_items: int = MAX_ITEMS_PER_TYPE) -> str:
    type_name = TYPE_NAMES_DE[ComparisonItemType(item_type)]
    return f"Sie können maximal {max_items} {type_name} gleichzeitig vergleichen."


class ComparisonStore:
    """
    The comparison set for one user session.

    Construct one per session and pass it to whatever needs it; there is no
    module-level instance.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        storage_key: str = "comparison_items",
        max_items_per_type: int = MAX_ITEMS_PER_TYPE,
    ) -> None:
        self.store = store
        self.storage_key = storage_key
        self.max_items_per_type = max_items_per_type
        self._subscribers: List[Subscriber] = []
        self._items: List[ComparisonItem] = self._load()

    @classmethod
    def from_settings(cls, settings: Settings, store: KeyValueStore) -> "ComparisonStore":
        return cls(
            store,
            storage_key=settings.comparison_storage_key,
            max_items_per_type=settings.comparison_max_items_per_type,
        )

    def _load(self) -> List[ComparisonItem]:
        raw = self.store.get(self.storage_key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring persisted comparison set of type %s", type(raw).__name__)
            return []

        items: List[ComparisonItem] = []
        for entry in raw:
            try:
                item = ComparisonItem.model_validate(entry)
            except ValidationError:
                logger.warning("Skipping malformed comparison entry: %r", entry)
                continue
            if any(existing.key == item.key for existing in items):
                continue
            if sum(1 for existing in items if existing.type == item.type) >= self.max_items_per_type:
                logger.warning("Dropping %s %s beyond capacity on load", item.type.value, item.id)
                continue
            items.append(item)
        return items

    def _persist(self) -> None:
        payload = [item.model_dump(mode="json") for item in self._items]
        try:
            self.store.set(self.storage_key, payload)
        except Exception:
            # In-memory state stays authoritative for this session.
            logger.warning("Failed to persist comparison set", exc_info=True)

    def _changed(self) -> None:
        self._persist()
        snapshot = self.items
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Comparison subscriber %r failed", callback)

    @property
    def items(self) -> Tuple[ComparisonItem, ...]:
        return tuple(self._items)

    def get(self) -> Tuple[ComparisonItem, ...]:
        return self.items

    def count(self, item_type: ItemType) -> int:
        item_type = ComparisonItemType(item_type)
        return sum(1 for item in self._items if item.type == item_type)

    def add_item(self, item: ComparisonItem) -> AddResult:
        """
        Add ``item`` to the set.

        Re-adding an existing (id, type) succeeds without changing anything.
        A type already holding ``max_items_per_type`` items is rejected.
        """
        if self.is_in_comparison(item.id, item.type):
            return AddResult(added=True)
        if not self.can_add_more(item.type):
            return AddResult(
                added=False,
                reason=RejectionReason.CAPACITY_EXCEEDED,
                message=capacity_message(item.type, self.max_items_per_type),
            )
        self._items.append(item)
        self._changed()
        return AddResult(added=True)

    def add(
        self, item_id: int, item_type: ItemType, data: Optional[dict[str, Any]] = None
    ) -> AddResult:
        return self.add_item(ComparisonItem(id=item_id, type=item_type, data=data or {}))

    def remove_item(self, item_id: int, item_type: ItemType) -> None:
        key = (item_id, ComparisonItemType(item_type))
        remaining = [item for item in self._items if item.key != key]
        if len(remaining) != len(self._items):
            self._items = remaining
            self._changed()

    remove = remove_item

    def clear(self, item_type: Optional[ItemType] = None) -> None:
        """Remove every item, or only the items of ``item_type``."""
        if item_type is None:
            remaining: List[ComparisonItem] = []
        else:
            item_type = ComparisonItemType(item_type)
            remaining = [item for item in self._items if item.type != item_type]
        if len(remaining) != len(self._items):
            self._items = remaining
            self._changed()

    def is_in_comparison(self, item_id: int, item_type: ItemType) -> bool:
        key = (item_id, ComparisonItemType(item_type))
        return any(item.key == key for item in self._items)

    def can_add_more(self, item_type: ItemType) -> bool:
        return self.count(item_type) < self.max_items_per_type

    def get_items_by_type(self, item_type: ItemType) -> List[ComparisonItem]:
        item_type = ComparisonItemType(item_type)
        return [item for item in self._items if item.type == item_type]

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback`` with the item tuple after every mutation."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe
