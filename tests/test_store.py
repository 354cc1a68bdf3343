import asyncio

import pytest

from cardsmith.db.sqlite import Store
from cardsmith.errors import StoreError
from cardsmith.models.flashcard import FlashcardUpdate
from cardsmith.services.scheduling import is_due


def test_open_creates_database_file(with_store, db_path):
    async def scenario(store):
        return await store.query_all()

    assert with_store(scenario) == []
    assert db_path.exists()


def test_open_failure_raises_store_error(tmp_path):
    # A directory cannot be opened as a database file
    target = tmp_path / "not-a-db"
    target.mkdir()
    with pytest.raises(StoreError):
        asyncio.run(Store.open(target))


def test_insert_round_trip(with_store, make_card):
    async def scenario(store):
        inserted = await store.insert(
            make_card(file="/notes/go.md", question="What is Go?", answer="A language", revisit_in=3)
        )
        return inserted, await store.query_all()

    inserted, cards = with_store(scenario)
    assert len(cards) == 1
    stored = cards[0]
    assert stored.id == inserted.id
    assert (stored.file, stored.question, stored.answer, stored.revisit_in) == (
        "/notes/go.md",
        "What is Go?",
        "A language",
        3,
    )
    assert stored.created_at is not None


def test_ids_are_unique_and_increasing(with_store, make_card):
    async def scenario(store):
        return [(await store.insert(make_card(question=f"Q{i}"))).id for i in range(3)]

    ids = with_store(scenario)
    assert ids == sorted(ids)
    assert len(set(ids)) == 3


def test_query_due_returns_due_cards_in_id_order(with_store, make_card):
    async def scenario(store):
        a = await store.insert(make_card(question="Q1", revisit_in=-1))
        await store.insert(make_card(question="Q2", revisit_in=5))
        c = await store.insert(make_card(question="Q3", revisit_in=0))
        return [a.id, c.id], await store.query_due()

    expected_ids, due = with_store(scenario)
    assert [c.id for c in due] == expected_ids
    assert all(is_due(c) for c in due)


def test_query_due_scenario_minus_one_zero_five(with_store, make_card):
    async def scenario(store):
        for value in (-1, 0, 5):
            await store.insert(make_card(question=f"rev {value}", revisit_in=value))
        return await store.query_due()

    due = with_store(scenario)
    assert [c.revisit_in for c in due] == [-1, 0]
    assert due[0].id < due[1].id


def test_query_due_for_files_with_empty_set_is_empty(with_store, make_card):
    async def scenario(store):
        await store.insert(make_card(file="/notes/a.md"))
        return await store.query_due_for_files([])

    assert with_store(scenario) == []


def test_query_due_for_files_filters_by_file(with_store, make_card):
    async def scenario(store):
        await store.insert(make_card(file="/notes/a.md", question="a1"))
        await store.insert(make_card(file="/notes/b.md", question="b1"))
        await store.insert(make_card(file="/notes/a.md", question="a2", revisit_in=4))
        await store.insert(make_card(file="/notes/c.md", question="c1"))
        return await store.query_due_for_files({"/notes/a.md", "/notes/c.md"})

    due = with_store(scenario)
    assert [c.question for c in due] == ["a1", "c1"]


def test_query_all_orders_by_revisit_then_id(with_store, make_card):
    async def scenario(store):
        await store.insert(make_card(question="late", revisit_in=7))
        await store.insert(make_card(question="now-1", revisit_in=0))
        await store.insert(make_card(question="overdue", revisit_in=-2))
        await store.insert(make_card(question="now-2", revisit_in=0))
        return await store.query_all()

    assert [c.question for c in with_store(scenario)] == ["overdue", "now-1", "now-2", "late"]


def test_update_only_touches_revisit_in(with_store, make_card):
    async def scenario(store):
        created = await store.insert(make_card(question="keep me", answer="same"))
        found = await store.update(created.id, 9)
        missing = await store.update(created.id + 100, 9)
        return found, missing, await store.get(created.id)

    found, missing, stored = with_store(scenario)
    assert found is True
    assert missing is False
    assert stored.revisit_in == 9
    assert (stored.question, stored.answer) == ("keep me", "same")


def test_update_full_and_delete(with_store, make_card):
    async def scenario(store):
        created = await store.insert(make_card())
        updated = await store.update_full(
            created.id,
            FlashcardUpdate(file="manual", question="New Q", answer="New A", revisit_in=2),
        )
        absent = await store.update_full(
            created.id + 1,
            FlashcardUpdate(file="x", question="x", answer="x", revisit_in=0),
        )
        deleted = await store.delete(created.id)
        deleted_again = await store.delete(created.id)
        return updated, absent, deleted, deleted_again, await store.query_all()

    updated, absent, deleted, deleted_again, remaining = with_store(scenario)
    assert (updated.file, updated.question, updated.answer, updated.revisit_in) == (
        "manual",
        "New Q",
        "New A",
        2,
    )
    assert absent is None
    assert deleted is True
    assert deleted_again is False
    assert remaining == []


def test_is_processed_matches_exact_path(with_store, make_card):
    async def scenario(store):
        before = await store.is_processed("/notes/a.md")
        await store.insert(make_card(file="/notes/a.md"))
        return (
            before,
            await store.is_processed("/notes/a.md"),
            await store.is_processed("/notes/a.md.bak"),
            await store.is_processed("notes/a.md"),
        )

    assert with_store(scenario) == (False, True, False, False)


def test_list_distinct_files_sorted(with_store, make_card):
    async def scenario(store):
        for f in ("/z.md", "/a.md", "/m.md", "/a.md"):
            await store.insert(make_card(file=f))
        return await store.list_distinct_files()

    assert with_store(scenario) == ["/a.md", "/m.md", "/z.md"]


def test_reset_all_and_stats(with_store, make_card):
    async def scenario(store):
        await store.insert(make_card(file="/a.md", revisit_in=3))
        await store.insert(make_card(file="/a.md", revisit_in=0))
        await store.insert(make_card(file="/b.md", revisit_in=7))
        before = await store.stats()
        count = await store.reset_all()
        return before, count, await store.stats()

    before, count, after = with_store(scenario)
    assert before.total_cards == 3
    assert before.due == 1
    assert [(f.file, f.total, f.due) for f in before.per_file] == [("/a.md", 2, 1), ("/b.md", 1, 0)]
    assert count == 3
    assert after.due == 3
