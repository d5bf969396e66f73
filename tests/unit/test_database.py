"""Unit tests for the persisted mapping store."""

import pytest

from termbeacon.database import MappingStore, Setting
from termbeacon.exceptions import DuplicateMappingError, MappingNotFoundError
from termbeacon.mappings import Mapping


def test_empty_store_loads_nothing(store: MappingStore) -> None:
    assert store.load() == []
    assert store.get_blob("missing") is None


def test_add_and_load(store: MappingStore, pet_mappings: list[Mapping]) -> None:
    """Added mappings persist in insertion order."""
    for mapping in pet_mappings:
        store.add(mapping)

    assert store.load() == pet_mappings


def test_add_rejects_duplicate_terms(store: MappingStore) -> None:
    """Same term lists with different colors still count as a duplicate."""
    store.add(Mapping(("cat",), ("dog",), "#111", "#222"))

    with pytest.raises(DuplicateMappingError):
        store.add(Mapping(("cat",), ("dog",), "#333", "#444"))
    assert len(store.load()) == 1


def test_update_and_delete(store: MappingStore, pet_mappings: list[Mapping]) -> None:
    store.save(pet_mappings)
    replacement = Mapping(("hamster",), ("gerbil",))

    assert store.update(1, replacement)[1] == replacement
    assert store.delete(0) == [replacement]
    assert store.load() == [replacement]


@pytest.mark.parametrize("index", [-1, 2, 10])
def test_bad_index(store: MappingStore, pet_mappings: list[Mapping], index: int) -> None:
    store.save(pet_mappings)

    with pytest.raises(MappingNotFoundError):
        store.update(index, pet_mappings[0])
    with pytest.raises(MappingNotFoundError):
        store.delete(index)


def test_clear(store: MappingStore, pet_mappings: list[Mapping]) -> None:
    store.save(pet_mappings)

    assert store.clear() == []
    assert store.load() == []


def test_legacy_blob_is_normalized_and_rewritten(store: MappingStore) -> None:
    """Scalar mappedTerm records are upgraded once; broken records are dropped."""
    store.set_blob(
        "mappings",
        [
            {"searchTerms": ["cat"], "mappedTerm": "dog"},
            {"searchTerms": [], "mappedTerms": ["orphan"]},
            "garbage",
        ],
    )

    mappings = store.load()

    assert mappings == [Mapping(("cat",), ("dog",), store.colors.search, store.colors.mapped)]
    assert store.get_blob("mappings") == [mappings[0].to_dict()]


def test_corrupt_blob_reads_as_empty(store: MappingStore) -> None:
    Setting.create(key="mappings", value="{not json")

    assert store.get_blob("mappings") is None
    assert store.load() == []
