import pytest
from germansphere_client.comparison import (
    MAX_ITEMS_PER_TYPE,
    ComparisonStore,
    capacity_message,
)
from germansphere_client.config import Settings
from germansphere_client.schemas import ComparisonItem, ComparisonItemType, RejectionReason
from germansphere_client.storage import JsonFileStore, MemoryStore


def _course(item_id: int, **data) -> ComparisonItem:
    return ComparisonItem(id=item_id, type="course", data={"title": f"Kurs {item_id}", **data})


def _tutor(item_id: int) -> ComparisonItem:
    return ComparisonItem(id=item_id, type=ComparisonItemType.TUTOR, data={"name": f"T{item_id}"})


class _BrokenStore(MemoryStore):
    def set(self, key, value):
        raise OSError("disk full")


def test_add_item_appends_in_insertion_order():
    comparison = ComparisonStore(MemoryStore())

    for item_id in (3, 1, 2):
        assert comparison.add_item(_course(item_id)).added is True

    assert [item.id for item in comparison.get_items_by_type("course")] == [3, 1, 2]
    assert comparison.is_in_comparison(1, "course") is True
    assert comparison.is_in_comparison(1, ComparisonItemType.TUTOR) is False


def test_fifth_course_rejected_but_tutor_accepted():
    comparison = ComparisonStore(MemoryStore())
    for item_id in range(1, 5):
        comparison.add_item(_course(item_id))

    rejected = comparison.add_item(_course(5))
    accepted = comparison.add_item(_tutor(5))

    assert rejected.added is False
    assert rejected.rejected is True
    assert rejected.reason == RejectionReason.CAPACITY_EXCEEDED
    assert rejected.message == "Sie können maximal 4 Kurse gleichzeitig vergleichen."
    assert accepted.added is True
    assert comparison.count("course") == 4
    assert comparison.count("tutor") == 1
    assert comparison.can_add_more("course") is False
    assert comparison.can_add_more("tutor") is True


def test_capacity_never_exceeded_for_any_add_sequence():
    comparison = ComparisonStore(MemoryStore())
    types = list(ComparisonItemType)

    for step in range(40):
        item_type = types[step % 3]
        comparison.add_item(ComparisonItem(id=step // 2, type=item_type))
        for t in types:
            assert len(comparison.get_items_by_type(t)) <= MAX_ITEMS_PER_TYPE


def test_duplicate_add_is_idempotent():
    store = MemoryStore()
    comparison = ComparisonStore(store)
    comparison.add_item(_course(1))

    result = comparison.add_item(_course(1, title="Neuer Titel"))

    assert result.added is True
    assert result.reason is None
    assert len(comparison.get_items_by_type("course")) == 1
    assert comparison.items[0].data["title"] == "Kurs 1"


def test_duplicate_add_when_full_still_succeeds():
    comparison = ComparisonStore(MemoryStore())
    for item_id in range(1, 5):
        comparison.add_item(_course(item_id))

    assert comparison.add_item(_course(2)).added is True


def test_same_id_different_type_are_distinct():
    comparison = ComparisonStore(MemoryStore())

    comparison.add(1, "course")
    comparison.add(1, "school")

    assert len(comparison.items) == 2


def test_remove_item_is_noop_for_missing():
    comparison = ComparisonStore(MemoryStore())
    comparison.add_item(_course(1))

    comparison.remove_item(99, "course")
    comparison.remove_item(1, "tutor")
    assert len(comparison.items) == 1

    comparison.remove_item(1, "course")
    assert comparison.items == ()
    assert comparison.can_add_more("course") is True


def test_clear_all_and_by_type():
    comparison = ComparisonStore(MemoryStore())
    comparison.add_item(_course(1))
    comparison.add_item(_tutor(2))
    comparison.add(3, "school", {"name": "Goethe"})

    comparison.clear("tutor")
    assert {item.type for item in comparison.items} == {
        ComparisonItemType.COURSE,
        ComparisonItemType.SCHOOL,
    }

    comparison.clear()
    assert comparison.items == ()


def test_every_mutation_is_persisted():
    store = MemoryStore()
    comparison = ComparisonStore(store, storage_key="cmp")

    comparison.add_item(_course(1, price=899))
    assert store.get("cmp") == [
        {"id": 1, "type": "course", "data": {"title": "Kurs 1", "price": 899}}
    ]

    comparison.add_item(_tutor(2))
    assert [entry["id"] for entry in store.get("cmp")] == [1, 2]

    comparison.remove_item(1, "course")
    assert [entry["id"] for entry in store.get("cmp")] == [2]

    comparison.clear()
    assert store.get("cmp") == []


def test_rehydrates_from_persisted_store(tmp_path):
    path = tmp_path / "profile.json"
    first = ComparisonStore(JsonFileStore(path))
    first.add_item(_course(1))
    first.add_item(_tutor(7))

    second = ComparisonStore(JsonFileStore(path))

    assert [item.key for item in second.items] == [
        (1, ComparisonItemType.COURSE),
        (7, ComparisonItemType.TUTOR),
    ]


def test_rehydrate_skips_malformed_duplicate_and_overflow_entries(caplog):
    persisted = [
        {"id": 1, "type": "course", "data": {}},
        {"id": 1, "type": "course", "data": {"dupe": True}},
        {"id": "x", "type": "course"},
        {"id": 2, "type": "bakery"},
        "garbage",
        *({"id": n, "type": "school"} for n in range(10, 16)),
    ]

    comparison = ComparisonStore(MemoryStore({"comparison_items": persisted}))

    assert comparison.get_items_by_type("course")[0].data == {}
    assert comparison.count("course") == 1
    assert comparison.count("school") == 4
    assert "beyond capacity" in caplog.text


def test_rehydrate_ignores_non_list_payload():
    comparison = ComparisonStore(MemoryStore({"comparison_items": {"id": 1}}))
    assert comparison.items == ()


def test_failed_persist_keeps_in_memory_mutation(caplog):
    comparison = ComparisonStore(_BrokenStore())

    result = comparison.add_item(_course(1))

    assert result.added is True
    assert comparison.is_in_comparison(1, "course")
    assert "Failed to persist comparison set" in caplog.text


def test_subscribers_receive_snapshot_and_can_unsubscribe():
    comparison = ComparisonStore(MemoryStore())
    seen = []
    unsubscribe = comparison.subscribe(lambda items: seen.append([i.id for i in items]))

    comparison.add_item(_course(1))
    comparison.add_item(_course(1))
    comparison.add_item(_course(2))
    unsubscribe()
    comparison.remove_item(1, "course")

    assert seen == [[1], [1, 2]]


def test_failing_subscriber_does_not_break_mutation():
    comparison = ComparisonStore(MemoryStore())

    def explode(items):
        raise RuntimeError("render failed")

    comparison.subscribe(explode)
    comparison.add_item(_course(1))

    assert comparison.count("course") == 1


def test_from_settings_uses_configured_key_and_capacity():
    settings = Settings(comparison_storage_key="vergleich", comparison_max_items_per_type=2)
    store = MemoryStore()
    comparison = ComparisonStore.from_settings(settings, store)

    comparison.add_item(_course(1))
    comparison.add_item(_course(2))
    result = comparison.add_item(_course(3))

    assert result.reason == RejectionReason.CAPACITY_EXCEEDED
    assert "maximal 2 Kurse" in result.message
    assert len(store.get("vergleich")) == 2


@pytest.mark.parametrize(
    "item_type, name",
    [("school", "Schulen"), ("course", "Kurse"), ("tutor", "Tutoren")],
)
def test_capacity_message_names_type(item_type, name):
    assert capacity_message(item_type) == f"Sie können maximal 4 {name} gleichzeitig vergleichen."


def test_unknown_type_is_rejected():
    comparison = ComparisonStore(MemoryStore())
    with pytest.raises(ValueError):
        comparison.can_add_more("bakery")
