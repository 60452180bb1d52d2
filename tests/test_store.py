"""
Tests for InMemoryContextStore.

Covers CRUD semantics, chunk re-indexing on update, list pagination and
consistency of the chunk index under concurrent access.
"""
import threading
import time

import pytest

from context_engine.core.exceptions import NotFoundError
from context_engine.models.context import content_hash


class TestCreate:

    def test_create_returns_stored_record(self, store):
        context = store.create("hello world", tags={"a", "b"}, source="doc", metadata={"k": "v"})

        assert context.id
        assert context.content == "hello world"
        assert context.tags == {"a", "b"}
        assert context.source == "doc"
        assert context.metadata == {"k": "v"}
        assert context.created_at == context.updated_at
        assert context.content_hash == content_hash("hello world")
        assert store.get(context.id).content == "hello world"

    def test_create_indexes_chunks(self, store):
        content = "word " * 30  # 150 chars, 40/10 chunking
        context = store.create(content)
        chunks = store.chunks_for(context.id)

        assert [c.index for c in chunks] == list(range(len(chunks)))
        assert len(chunks) == 5
        assert all(c.context_id == context.id for c in chunks)
        assert all(len(c.text) <= 40 for c in chunks)
        assert all(content[c.offset:c.offset + len(c.text)] == c.text for c in chunks)

    def test_short_content_single_chunk(self, large_chunk_store):
        content = "This is a test context for the Model Context Protocol"
        context = large_chunk_store.create(content, tags={"test", "example"})
        chunks = large_chunk_store.chunks_for(context.id)

        assert len(chunks) == 1
        assert chunks[0].text == content

    def test_empty_content_has_no_chunks(self, store):
        context = store.create("")
        assert store.chunks_for(context.id) == []

    def test_ids_are_unique(self, store):
        ids = {store.create(f"content {i}").id for i in range(50)}
        assert len(ids) == 50

    def test_returned_record_is_detached(self, store):
        context = store.create("text", tags={"a"})
        context.tags.add("mutated")
        context.content = "mutated"

        stored = store.get(context.id)
        assert stored.tags == {"a"}
        assert stored.content == "text"


class TestGet:

    def test_missing_id_raises(self, store):
        with pytest.raises(NotFoundError):
            store.get("does-not-exist")


class TestUpdate:

    def test_content_update_replaces_chunks(self, store):
        context = store.create("alpha " * 20)
        old_chunk_ids = {c.chunk_id for c in store.chunks_for(context.id)}

        updated = store.update(context.id, content="omega " * 5)
        chunks = store.chunks_for(context.id)

        assert updated.content == "omega " * 5
        assert all("omega" in c.text for c in chunks)
        assert not any("alpha" in c.text for c in chunks)
        assert old_chunk_ids.isdisjoint(c.chunk_id for c in chunks)
        assert [c.index for c in chunks] == list(range(len(chunks)))

    def test_tags_only_update_keeps_content_and_chunks(self, store):
        context = store.create("stable content", tags={"old"})
        before = store.chunks_for(context.id)

        updated = store.update(context.id, tags={"new"})

        assert updated.tags == {"new"}
        assert updated.content == "stable content"
        assert store.chunks_for(context.id) == before

    def test_content_only_update_keeps_tags(self, store):
        context = store.create("first", tags={"keep"})
        updated = store.update(context.id, content="second")
        assert updated.tags == {"keep"}
        assert updated.content == "second"

    def test_update_refreshes_updated_at(self, store):
        context = store.create("text")
        time.sleep(0.001)
        updated = store.update(context.id, source="elsewhere")

        assert updated.updated_at > context.updated_at
        assert updated.created_at == context.created_at
        assert updated.source == "elsewhere"

    def test_update_with_nothing_is_noop(self, store):
        context = store.create("text", tags={"a"})
        updated = store.update(context.id)

        assert updated.content == context.content
        assert updated.tags == context.tags
        assert updated.updated_at == context.updated_at

    def test_update_missing_raises(self, store):
        with pytest.raises(NotFoundError):
            store.update("missing", content="x")
        with pytest.raises(NotFoundError):
            store.update("missing")


class TestDelete:

    def test_delete_removes_context_and_chunks(self, store):
        context = store.create("to be removed")
        store.delete(context.id)

        with pytest.raises(NotFoundError):
            store.get(context.id)
        with pytest.raises(NotFoundError):
            store.chunks_for(context.id)
        assert store.count() == 0

    def test_second_delete_raises(self, store):
        context = store.create("once")
        store.delete(context.id)
        with pytest.raises(NotFoundError):
            store.delete(context.id)

    def test_deleted_ids_are_not_reissued(self, store, monkeypatch):
        context = store.create("first")
        store.delete(context.id)

        issued = iter([context.id, "fresh-id"])
        monkeypatch.setattr(
            "context_engine.services.context.store.new_id", lambda: next(issued)
        )
        assert store.create("second").id == "fresh-id"


class TestList:

    def test_insertion_order(self, store):
        ids = [store.create(f"c{i}").id for i in range(5)]
        assert [c.id for c in store.list()] == ids

    def test_order_is_stable_after_update(self, store):
        ids = [store.create(f"c{i}").id for i in range(3)]
        store.update(ids[0], content="changed")
        assert [c.id for c in store.list()] == ids

    def test_tag_filter_requires_all_tags(self, store):
        both = store.create("x", tags={"a", "b"})
        store.create("y", tags={"a"})
        assert [c.id for c in store.list(tags={"a", "b"})] == [both.id]

    def test_limit_and_offset(self, store):
        ids = [store.create(f"c{i}").id for i in range(5)]
        assert [c.id for c in store.list(limit=2, offset=1)] == ids[1:3]
        assert [c.id for c in store.list(offset=4)] == ids[4:]
        assert store.list(limit=0) == []


class TestConcurrency:
    """Readers never see chunks that disagree with content."""

    def test_concurrent_updates_and_reads_stay_consistent(self, store):
        context = store.create("seed " * 20)
        errors = []
        stop = threading.Event()

        def writer(word):
            for i in range(30):
                store.update(context.id, content=f"{word}{i} " * 20)

        def reader():
            while not stop.is_set():
                for ctx, chunks in store.snapshot():
                    rebuilt = "".join(
                        c.text if n == 0 else c.text[store.chunker.chunk_overlap:]
                        for n, c in enumerate(chunks)
                    )
                    if rebuilt != ctx.content:
                        errors.append((ctx.content, rebuilt))

        readers = [threading.Thread(target=reader) for _ in range(3)]
        writers = [threading.Thread(target=writer, args=(w,)) for w in ("red", "blue")]
        for t in readers + writers:
            t.start()
        for t in writers:
            t.join()
        stop.set()
        for t in readers:
            t.join()

        assert errors == []

    def test_concurrent_creates(self, store):
        def create_many():
            for i in range(25):
                store.create(f"item {i}")

        threads = [threading.Thread(target=create_many) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        contexts = store.list()
        assert len(contexts) == 100
        assert len({c.id for c in contexts}) == 100
