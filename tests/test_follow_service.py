import asyncio

import pytest
from sqlalchemy import select, update

from vidify.database import AsyncSessionLocal
from vidify.exceptions import (
    AlreadyExists,
    InvalidOperation,
    NotFollowing,
    NotFound,
    StorageFailure,
)
from vidify.models import Follow, User
from vidify.services import follow_store
from vidify.services.follow_service import FollowService


async def _counters(session, user_id: int) -> tuple[int, int]:
    res = await session.execute(
        select(User.followers_count, User.following_count).where(User.id == user_id)
    )
    row = res.one()
    return row.followers_count, row.following_count


async def _edge_count(session, follower_id: int, following_id: int) -> int:
    res = await session.execute(
        select(Follow.id).where(
            Follow.follower_id == follower_id,
            Follow.following_id == following_id,
        )
    )
    return len(res.all())


class TestFollow:
    async def test_follow_creates_edge_and_counts(self, test_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        await FollowService(test_session).follow(alice.id, bob.id)

        assert await FollowService(test_session).is_following(alice.id, bob.id)
        assert not await FollowService(test_session).is_following(bob.id, alice.id)
        assert await _counters(test_session, alice.id) == (0, 1)
        assert await _counters(test_session, bob.id) == (1, 0)

    async def test_self_follow_rejected(self, test_session, make_user):
        alice = await make_user("alice")

        with pytest.raises(InvalidOperation) as exc_info:
            await FollowService(test_session).follow(alice.id, alice.id)

        assert exc_info.value.kind == "invalid_operation"
        assert await _edge_count(test_session, alice.id, alice.id) == 0
        assert await _counters(test_session, alice.id) == (0, 0)

    async def test_duplicate_follow_rejected(self, test_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        service = FollowService(test_session)

        await service.follow(alice.id, bob.id)
        with pytest.raises(AlreadyExists):
            await service.follow(alice.id, bob.id)

        assert await _edge_count(test_session, alice.id, bob.id) == 1
        assert await _counters(test_session, alice.id) == (0, 1)
        assert await _counters(test_session, bob.id) == (1, 0)

    async def test_follow_unknown_user(self, test_session, make_user):
        alice = await make_user("alice")

        with pytest.raises(NotFound):
            await FollowService(test_session).follow(alice.id, 999999)

        assert await _counters(test_session, alice.id) == (0, 0)
        res = await test_session.execute(select(Follow.id))
        assert res.all() == []

    async def test_unknown_follower(self, test_session, make_user):
        bob = await make_user("bob")

        with pytest.raises(NotFound):
            await FollowService(test_session).follow(999999, bob.id)

        assert await _counters(test_session, bob.id) == (0, 0)

    async def test_mutual_follow(self, test_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        service = FollowService(test_session)

        await service.follow(alice.id, bob.id)
        await service.follow(bob.id, alice.id)

        assert await _counters(test_session, alice.id) == (1, 1)
        assert await _counters(test_session, bob.id) == (1, 1)


class TestUnfollow:
    async def test_unfollow_round_trip(self, test_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        service = FollowService(test_session)

        await service.follow(alice.id, bob.id)
        await service.unfollow(alice.id, bob.id)

        assert not await service.is_following(alice.id, bob.id)
        assert await _counters(test_session, alice.id) == (0, 0)
        assert await _counters(test_session, bob.id) == (0, 0)

    async def test_unfollow_without_edge(self, test_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        with pytest.raises(NotFollowing) as exc_info:
            await FollowService(test_session).unfollow(alice.id, bob.id)

        assert exc_info.value.message == "You are not following this user"
        assert await _counters(test_session, alice.id) == (0, 0)
        assert await _counters(test_session, bob.id) == (0, 0)

    async def test_second_unfollow_fails(self, test_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        service = FollowService(test_session)

        await service.follow(alice.id, bob.id)
        await service.unfollow(alice.id, bob.id)
        with pytest.raises(NotFollowing):
            await service.unfollow(alice.id, bob.id)

        assert await _counters(test_session, bob.id) == (0, 0)

    async def test_counters_never_negative(self, test_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        service = FollowService(test_session)
        await service.follow(alice.id, bob.id)

        # Simulate drift: counters already at zero while the edge exists
        await test_session.execute(
            update(User)
            .where(User.id.in_([alice.id, bob.id]))
            .values(followers_count=0, following_count=0)
        )
        await test_session.commit()

        await service.unfollow(alice.id, bob.id)

        assert await _counters(test_session, alice.id) == (0, 0)
        assert await _counters(test_session, bob.id) == (0, 0)
        assert await _edge_count(test_session, alice.id, bob.id) == 0


class TestConcurrency:
    async def test_concurrent_duplicate_follows_create_one_edge(self, test_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        async def attempt():
            async with AsyncSessionLocal() as session:
                try:
                    await FollowService(session).follow(alice.id, bob.id)
                    return "ok"
                except AlreadyExists:
                    return "duplicate"

        results = await asyncio.gather(*(attempt() for _ in range(5)))

        assert results.count("ok") == 1
        assert results.count("duplicate") == 4
        assert await _edge_count(test_session, alice.id, bob.id) == 1
        assert await _counters(test_session, alice.id) == (0, 1)
        assert await _counters(test_session, bob.id) == (1, 0)

    async def test_concurrent_followers_of_one_user(self, test_session, make_user):
        target = await make_user("target")
        fans = [await make_user(f"fan{i}") for i in range(4)]

        async def attempt(fan_id: int):
            async with AsyncSessionLocal() as session:
                await FollowService(session).follow(fan_id, target.id)

        await asyncio.gather(*(attempt(f.id) for f in fans))

        assert await _counters(test_session, target.id) == (4, 0)
        for fan in fans:
            assert await _counters(test_session, fan.id) == (0, 1)


class TestListsAndStatus:
    async def test_status(self, test_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        service = FollowService(test_session)

        assert await service.status(alice.id, bob.id) == {"is_following": False}
        await service.follow(alice.id, bob.id)
        assert await service.status(alice.id, bob.id) == {"is_following": True}

    async def test_followers_and_following_lists(self, test_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        service = FollowService(test_session)

        await service.follow(alice.id, carol.id)
        await service.follow(bob.id, carol.id)

        rows, total = await service.followers(carol.id, limit=10, offset=0)
        assert total == 2
        # Newest edge first
        assert [u.username for (u, _) in rows] == ["bob", "alice"]

        rows, total = await service.following(alice.id, limit=10, offset=0)
        assert total == 1
        assert rows[0][0].id == carol.id

        rows, total = await service.followers(carol.id, limit=1, offset=1)
        assert total == 2
        assert [u.username for (u, _) in rows] == ["alice"]

    async def test_list_for_unknown_user(self, test_session):
        with pytest.raises(NotFound):
            await FollowService(test_session).followers(424242)


class TestStore:
    async def test_decrement_refused_at_zero(self, test_session, make_user):
        alice = await make_user("alice")

        changed = await follow_store.increment_counter(test_session, alice.id, "followers", -1)
        await test_session.commit()

        assert changed is False
        assert await _counters(test_session, alice.id) == (0, 0)

    async def test_increment_unknown_user(self, test_session):
        assert await follow_store.increment_counter(test_session, 999999, "following", 1) is False

    async def test_increment_rejects_bad_delta(self, test_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(ValueError):
            await follow_store.increment_counter(test_session, alice.id, "followers", 2)

    async def test_create_edge_if_absent(self, test_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        assert await follow_store.create_edge_if_absent(test_session, alice.id, bob.id) is True
        await test_session.commit()
        assert await follow_store.create_edge_if_absent(test_session, alice.id, bob.id) is False
        assert await _edge_count(test_session, alice.id, bob.id) == 1

    async def test_reconcile_counters(self, test_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await FollowService(test_session).follow(alice.id, bob.id)

        await test_session.execute(
            update(User).where(User.id == bob.id).values(followers_count=7)
        )
        await test_session.commit()

        fixed = await follow_store.reconcile_counters(test_session)

        assert fixed == 1
        assert await _counters(test_session, bob.id) == (1, 0)
        assert await _counters(test_session, alice.id) == (0, 1)


async def test_storage_failure_is_reported(test_session, make_user, monkeypatch):
    from sqlalchemy.exc import OperationalError

    alice = await make_user("alice")
    bob = await make_user("bob")

    async def broken(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(follow_store, "create_edge_if_absent", broken)

    with pytest.raises(StorageFailure):
        await FollowService(test_session).follow(alice.id, bob.id)
    assert await _counters(test_session, bob.id) == (0, 0)
