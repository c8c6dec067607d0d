"""Tests for the server-backed collection mirror."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from operalog.client.collections import RemoteCollection
from operalog.client.comments import without_comment
from operalog.models.entries import Comment, WatchedEntry, WishlistEntry
from operalog.models.failure import AuthRequired, NetworkFailure, ValidationFailure


@pytest.fixture
def errors() -> list[str]:
    return []


def make_wishlist(
    errors: list[str],
    fetch: AsyncMock | None = None,
    create: AsyncMock | None = None,
    delete: AsyncMock | None = None,
) -> RemoteCollection[WishlistEntry]:
    return RemoteCollection(
        "wishlist",
        fetch=fetch or AsyncMock(return_value=[]),
        create=create or AsyncMock(),
        delete=delete or AsyncMock(return_value=True),
        report_error=errors.append,
    )


class TestLoad:
    async def test_success_replaces_and_marks_loaded(self, errors: list[str]) -> None:
        server = [WishlistEntry(id="w1", opera_id="1"), WishlistEntry(id="w2", opera_id="2")]
        wishlist = make_wishlist(errors, fetch=AsyncMock(return_value=server))
        wishlist.restore([WishlistEntry(opera_id="stale")])

        await wishlist.load()

        assert wishlist.loaded is True
        assert list(wishlist.items) == server
        assert errors == []

    async def test_loaded_collection_does_not_refetch(self, errors: list[str]) -> None:
        fetch = AsyncMock(return_value=[])
        wishlist = make_wishlist(errors, fetch=fetch)

        await wishlist.load()
        await wishlist.load()

        fetch.assert_awaited_once()

    async def test_unauthorized_is_empty_without_error(self, errors: list[str]) -> None:
        """Anonymous users simply have no list."""
        wishlist = make_wishlist(errors, fetch=AsyncMock(side_effect=AuthRequired()))
        wishlist.restore([WishlistEntry(opera_id="1")])

        await wishlist.load()

        assert wishlist.items == ()
        assert wishlist.loaded is False
        assert errors == []

    async def test_failure_keeps_contents_and_reports(self, errors: list[str]) -> None:
        previous = [WishlistEntry(id="w1", opera_id="1")]
        wishlist = make_wishlist(
            errors, fetch=AsyncMock(side_effect=NetworkFailure("boom", status_code=500))
        )
        wishlist.restore(previous)

        await wishlist.load()

        assert list(wishlist.items) == previous
        assert wishlist.loaded is False
        assert errors == ["Failed to load wishlist"]

    async def test_malformed_response_reports(self, errors: list[str]) -> None:
        wishlist = make_wishlist(errors, fetch=AsyncMock(side_effect=ValidationFailure("bad")))

        await wishlist.load()

        assert wishlist.loaded is False
        assert errors == ["Failed to load wishlist"]

    async def test_loading_flag(self, errors: list[str]) -> None:
        release = asyncio.Event()

        async def fetch() -> list[WishlistEntry]:
            await release.wait()
            return []

        wishlist = make_wishlist(errors, fetch=fetch)  # type: ignore[arg-type]
        task = asyncio.create_task(wishlist.load())
        await asyncio.sleep(0)

        assert wishlist.loading is True

        release.set()
        await task

        assert wishlist.loading is False


class TestAdd:
    async def test_server_copy_replaces_stale_local_entry(self, errors: list[str]) -> None:
        server_entry = WishlistEntry(id="w1", opera_id="2", added_date="2024-01-01")
        create = AsyncMock(return_value=server_entry)
        wishlist = make_wishlist(errors, create=create)
        wishlist.restore([WishlistEntry(id="old", opera_id="2")])

        assert await wishlist.add(WishlistEntry(opera_id="2")) is True

        assert list(wishlist.items) == [server_entry]
        create.assert_awaited_once_with(WishlistEntry(opera_id="2"))

    async def test_adding_twice_keeps_one_entry(self, errors: list[str]) -> None:
        create = AsyncMock(
            side_effect=[
                WishlistEntry(id="w1", opera_id="2"),
                WishlistEntry(id="w1", opera_id="2"),
            ]
        )
        wishlist = make_wishlist(errors, create=create)

        await wishlist.add(WishlistEntry(opera_id="2"))
        await wishlist.add(WishlistEntry(opera_id="2"))

        assert len(wishlist) == 1

    async def test_failure_leaves_state_unchanged(self, errors: list[str]) -> None:
        existing = [WishlistEntry(id="w1", opera_id="1")]
        wishlist = make_wishlist(errors, create=AsyncMock(side_effect=NetworkFailure("boom")))
        wishlist.restore(existing)

        assert await wishlist.add(WishlistEntry(opera_id="2")) is False

        assert list(wishlist.items) == existing
        assert errors == ["Failed to add to wishlist"]

    async def test_not_signed_in_message(self, errors: list[str]) -> None:
        wishlist = make_wishlist(errors, create=AsyncMock(side_effect=AuthRequired()))

        await wishlist.add(WishlistEntry(opera_id="2"))

        assert errors == ["Sign in to add to your wishlist"]

    async def test_no_optimistic_insert_by_default(self, errors: list[str]) -> None:
        release = asyncio.Event()
        seen_during_request: list[int] = []
        wishlist = make_wishlist(errors)

        async def create(item: WishlistEntry) -> WishlistEntry:
            seen_during_request.append(len(wishlist))
            await release.wait()
            return WishlistEntry(id="w1", opera_id=item.opera_id)

        wishlist._create = create  # type: ignore[assignment]
        task = asyncio.create_task(wishlist.add(WishlistEntry(opera_id="2")))
        await asyncio.sleep(0)
        release.set()
        await task

        assert seen_during_request == [0]
        assert len(wishlist) == 1


class TestOptimisticAdd:
    @pytest.fixture
    def entry(self) -> WatchedEntry:
        return WatchedEntry(id="x1", opera_id="1", rating=3, date="2024-03-01")

    def make_watched(
        self, errors: list[str], create: AsyncMock
    ) -> RemoteCollection[WatchedEntry]:
        return RemoteCollection(
            "watched list",
            fetch=AsyncMock(return_value=[]),
            create=create,
            delete=AsyncMock(return_value=True),
            report_error=errors.append,
        )

    async def test_visible_before_server_answers(
        self, errors: list[str], entry: WatchedEntry
    ) -> None:
        release = asyncio.Event()
        updated = entry.model_copy(update={"rating": 1})

        async def create(item: WatchedEntry) -> WatchedEntry:
            await release.wait()
            return item

        watched = self.make_watched(errors, create)  # type: ignore[arg-type]
        watched.restore([entry])

        task = asyncio.create_task(watched.add(updated, optimistic=True))
        await asyncio.sleep(0)

        assert watched.get("1") == updated

        release.set()
        assert await task is True

    async def test_rollback_restores_position(self, errors: list[str], entry: WatchedEntry) -> None:
        first = WatchedEntry(id="x0", opera_id="0", rating=1, date="2024-01-01")
        last = WatchedEntry(id="x2", opera_id="2", rating=2, date="2024-05-01")
        watched = self.make_watched(errors, AsyncMock(side_effect=NetworkFailure("boom")))
        watched.restore([first, entry, last])

        comment = Comment(id="c1", author="me", date="2024-03-02", text="hi")
        updated = entry.model_copy(update={"comments": [comment]})
        assert await watched.add(updated, optimistic=True) is False

        assert list(watched.items) == [first, entry, last]
        assert errors == ["Failed to add to watched list"]

    async def test_rollback_of_new_entry_removes_it(self, errors: list[str]) -> None:
        watched = self.make_watched(errors, AsyncMock(side_effect=NetworkFailure("boom")))

        await watched.add(
            WatchedEntry(opera_id="9", rating=2, date="2024-01-01"), optimistic=True
        )

        assert watched.items == ()

    async def test_revert_keeps_changes_applied_meanwhile(
        self, errors: list[str], entry: WatchedEntry
    ) -> None:
        release = asyncio.Event()
        comment = Comment(id="c1", author="me", date="2024-03-02", text="hi")
        rerated = entry.model_copy(update={"rating": 1})

        async def create(item: WatchedEntry) -> WatchedEntry:
            if item.comments:
                await release.wait()
                raise NetworkFailure("boom")
            return item

        watched = self.make_watched(errors, create)  # type: ignore[arg-type]
        watched.restore([entry])

        task = asyncio.create_task(
            watched.add(
                entry.model_copy(update={"comments": [comment]}),
                optimistic=True,
                revert=lambda current: without_comment(current, "c1"),
            )
        )
        await asyncio.sleep(0)
        assert await watched.add(rerated) is True
        release.set()

        assert await task is False
        assert watched.get("1") == rerated

    async def test_revert_does_not_resurrect_removed_entry(
        self, errors: list[str], entry: WatchedEntry
    ) -> None:
        release = asyncio.Event()

        async def create(item: WatchedEntry) -> WatchedEntry:
            await release.wait()
            raise NetworkFailure("boom")

        watched = self.make_watched(errors, create)  # type: ignore[arg-type]
        watched.restore([entry])

        task = asyncio.create_task(
            watched.add(
                entry.model_copy(update={"rating": 2}),
                optimistic=True,
                revert=lambda current: current.model_copy(update={"rating": 3}),
            )
        )
        await asyncio.sleep(0)
        assert await watched.remove("1") is True
        release.set()

        assert await task is False
        assert watched.items == ()


class TestRemove:
    async def test_removes_after_success(self, errors: list[str]) -> None:
        delete = AsyncMock(return_value=True)
        wishlist = make_wishlist(errors, delete=delete)
        wishlist.restore(
            [WishlistEntry(id="w1", opera_id="1"), WishlistEntry(id="w2", opera_id="2")]
        )

        assert await wishlist.remove("1") is True

        assert [e.opera_id for e in wishlist.items] == ["2"]
        delete.assert_awaited_once_with("1")

    async def test_already_absent_on_server_still_removes(self, errors: list[str]) -> None:
        """The API client reports an absent key as False, not as a failure."""
        wishlist = make_wishlist(errors, delete=AsyncMock(return_value=False))
        wishlist.restore([WishlistEntry(id="w1", opera_id="1")])

        assert await wishlist.remove("1") is True

        assert wishlist.items == ()
        assert errors == []

    async def test_failure_keeps_entry(self, errors: list[str]) -> None:
        wishlist = make_wishlist(errors, delete=AsyncMock(side_effect=NetworkFailure("boom")))
        wishlist.restore([WishlistEntry(id="w1", opera_id="1")])

        assert await wishlist.remove("1") is False

        assert len(wishlist) == 1
        assert errors == ["Failed to remove from wishlist"]


class TestStaleResponses:
    async def test_load_overtaken_by_add_refetches(self, errors: list[str]) -> None:
        release = asyncio.Event()
        server = [WishlistEntry(id=f"w{i}", opera_id=str(i)) for i in range(1, 6)]
        added = WishlistEntry(id="w9", opera_id="9")
        calls = {"count": 0}

        async def fetch() -> list[WishlistEntry]:
            calls["count"] += 1
            if calls["count"] == 1:
                await release.wait()
                return list(server)
            return [*server, added]

        create = AsyncMock(return_value=added)
        wishlist = make_wishlist(errors, fetch=fetch, create=create)  # type: ignore[arg-type]

        load_task = asyncio.create_task(wishlist.load())
        await asyncio.sleep(0)
        await wishlist.add(WishlistEntry(opera_id="9"))
        release.set()
        await load_task

        assert calls["count"] == 2
        assert [e.opera_id for e in wishlist.items] == ["1", "2", "3", "4", "5", "9"]
        assert wishlist.loaded is True
        assert wishlist.loading is False
        assert errors == []

    async def test_load_overtaken_by_remove_refetches(self, errors: list[str]) -> None:
        release = asyncio.Event()
        responses = iter(
            [
                [WishlistEntry(id="w1", opera_id="1"), WishlistEntry(id="w2", opera_id="2")],
                [WishlistEntry(id="w2", opera_id="2")],
            ]
        )

        async def fetch() -> list[WishlistEntry]:
            items = next(responses)
            if len(items) == 2:
                await release.wait()
            return items

        wishlist = make_wishlist(errors, fetch=fetch)  # type: ignore[arg-type]
        wishlist.restore([WishlistEntry(id="w1", opera_id="1")])

        load_task = asyncio.create_task(wishlist.load())
        await asyncio.sleep(0)
        await wishlist.remove("1")
        release.set()
        await load_task

        assert [e.opera_id for e in wishlist.items] == ["2"]
        assert wishlist.loaded is True

    async def test_add_answered_after_newer_load_is_dropped(self, errors: list[str]) -> None:
        release = asyncio.Event()

        async def create(item: WishlistEntry) -> WishlistEntry:
            await release.wait()
            return WishlistEntry(id="w1", opera_id=item.opera_id)

        server = [WishlistEntry(id="w9", opera_id="9")]
        wishlist = make_wishlist(errors, fetch=AsyncMock(return_value=server))
        wishlist._create = create  # type: ignore[assignment]

        add_task = asyncio.create_task(wishlist.add(WishlistEntry(opera_id="2")))
        await asyncio.sleep(0)
        await wishlist.load()
        release.set()

        assert await add_task is True
        assert list(wishlist.items) == server

    async def test_clear_discards_in_flight_load(self, errors: list[str]) -> None:
        release = asyncio.Event()

        async def fetch() -> list[WishlistEntry]:
            await release.wait()
            return [WishlistEntry(id="w1", opera_id="1")]

        wishlist = make_wishlist(errors, fetch=fetch)  # type: ignore[arg-type]

        load_task = asyncio.create_task(wishlist.load())
        await asyncio.sleep(0)
        wishlist.clear()
        release.set()
        await load_task

        assert wishlist.items == ()
        assert wishlist.loaded is False

    async def test_clear_silences_failures_of_earlier_requests(self, errors: list[str]) -> None:
        release = asyncio.Event()

        async def fetch() -> list[WishlistEntry]:
            await release.wait()
            raise NetworkFailure("boom")

        wishlist = make_wishlist(errors, fetch=fetch)  # type: ignore[arg-type]

        load_task = asyncio.create_task(wishlist.load())
        await asyncio.sleep(0)
        wishlist.clear()
        release.set()
        await load_task

        assert errors == []

    async def test_older_load_finishing_last_is_dropped(self, errors: list[str]) -> None:
        first_release = asyncio.Event()
        responses = iter(
            [
                (first_release, [WishlistEntry(id="old", opera_id="1")]),
                (None, [WishlistEntry(id="new", opera_id="2")]),
            ]
        )

        async def fetch() -> list[WishlistEntry]:
            gate, items = next(responses)
            if gate is not None:
                await gate.wait()
            return items

        wishlist = make_wishlist(errors, fetch=fetch)  # type: ignore[arg-type]

        slow = asyncio.create_task(wishlist.load())
        await asyncio.sleep(0)
        await wishlist.load()
        first_release.set()
        await slow

        assert [e.id for e in wishlist.items] == ["new"]
        assert wishlist.loaded is True
