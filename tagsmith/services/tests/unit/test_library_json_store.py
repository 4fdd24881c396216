"""Unit tests for the JSON-file document store."""

import json

import pytest

from tagsmith.services.library.json_store import JsonLibraryStore, create_json_store
from tagsmith.services.library.models import Document
from tagsmith.services.library.protocols import (
    DocumentNotFoundError,
    StoreError,
    VersionConflictError,
)


@pytest.fixture
def library_file(temp_dir, sample_documents):
    path = temp_dir / "library.json"
    path.write_text(json.dumps({"documents": sample_documents}), encoding="utf-8")
    return path


class TestJsonLibraryStoreRead:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_loads_from_file(self, library_file):
        store = create_json_store(library_file)

        assert await store.list_document_ids() == ["D1", "D2", "D3", "PDF1"]
        document = await store.get_document("D2")
        assert document.title == "Humanoid Parkour"
        assert document.extra == "Citation Key: smith2024"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_file_is_empty_library(self, temp_dir):
        store = create_json_store(temp_dir / "absent.json")

        assert await store.list_document_ids() == []
        assert await store.list_all_tags() == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_document(self, store):
        with pytest.raises(DocumentNotFoundError):
            await store.get_document("NOPE")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_children_and_fulltext(self, store):
        children = await store.get_children("D1")

        assert [c.id for c in children] == ["N1", "A1"]
        assert children[0].is_note()
        assert children[1].is_pdf()
        assert await store.get_fulltext("A1") == "Introduction\nWe present\na method."
        assert await store.get_fulltext("missing") == ""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_returned_document_is_a_copy(self, store):
        document = await store.get_document("D1")
        document.tags.append("mutated")

        assert "mutated" not in store.raw("D1")["tags"]


class TestJsonLibraryStoreSave:
    """Test cases for versioned, atomic saves."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_save_persists_to_file(self, library_file):
        store = JsonLibraryStore(path=library_file)
        document = await store.get_document("D3")
        document.add_tag("task:grasping")
        document.extra = "note"

        await store.save(document)

        assert document.version == 1
        reopened = JsonLibraryStore(path=library_file)
        saved = await reopened.get_document("D3")
        assert saved.tags == ["task:grasping"]
        assert saved.extra == "note"
        assert saved.version == 1
        assert not library_file.with_suffix(".json.tmp").exists()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_children_survive_save(self, library_file):
        store = JsonLibraryStore(path=library_file)
        document = await store.get_document("D1")
        document.extra = "changed"

        await store.save(document)

        reopened = JsonLibraryStore(path=library_file)
        assert len(await reopened.get_children("D1")) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stale_version_rejected(self, store):
        first = await store.get_document("D3")
        second = await store.get_document("D3")
        first.extra = "first"
        await store.save(first)

        second.extra = "second"
        with pytest.raises(VersionConflictError):
            await store.save(second)

        assert store.raw("D3")["extra"] == "first"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_document_save(self, store):
        with pytest.raises(DocumentNotFoundError):
            await store.save(Document(id="NOPE"))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_write_failure_rolls_back(self, library_file, monkeypatch):
        store = JsonLibraryStore(path=library_file)
        document = await store.get_document("D3")
        document.extra = "lost"

        def broken_flush():
            raise OSError("disk full")

        monkeypatch.setattr(store, "_flush", broken_flush)

        with pytest.raises(StoreError):
            await store.save(document)

        assert store._entries["D3"]["extra"] == ""
        assert document.version == 0
