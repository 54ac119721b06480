from __future__ import annotations

from sqlalchemy import delete, desc, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Follow, User

_COUNTER_COLUMNS = {
    "followers": User.followers_count,
    "following": User.following_count,
}


async def increment_counter(db: AsyncSession, user_id: int, field: str, delta: int) -> bool:
    """Atomically add `delta` to a user's followers/following counter.

    Decrements never take the counter below zero. Returns False when no row
    was updated, either because the user does not exist or because the
    decrement was refused.
    """
    if delta not in (1, -1):
        raise ValueError(f"delta must be +1 or -1, got {delta}")
    column = _COUNTER_COLUMNS[field]

    stmt = update(User).where(User.id == user_id)
    if delta < 0:
        stmt = stmt.where(column > 0)
    stmt = stmt.values({column: column + delta})

    result = await db.execute(stmt)
    return result.rowcount == 1


async def find_edge(db: AsyncSession, follower_id: int, following_id: int) -> Follow | None:
    result = await db.execute(
        select(Follow).where(
            Follow.follower_id == follower_id,
            Follow.following_id == following_id,
        )
    )
    return result.scalar_one_or_none()


async def create_edge_if_absent(db: AsyncSession, follower_id: int, following_id: int) -> bool:
    """Insert the edge, letting the unique constraint arbitrate duplicates.

    Must be the first write of the caller's unit of work: on a duplicate the
    transaction is rolled back and False is returned. Other integrity errors
    (unknown user ids) propagate after the rollback.
    """
    try:
        await db.execute(
            insert(Follow).values(follower_id=follower_id,
                                  following_id=following_id)
        )
    except IntegrityError:
        await db.rollback()
        if await find_edge(db, follower_id, following_id) is not None:
            return False
        raise
    return True


async def delete_edge(db: AsyncSession, follower_id: int, following_id: int) -> int:
    result = await db.execute(
        delete(Follow).where(
            Follow.follower_id == follower_id,
            Follow.following_id == following_id,
        )
    )
    return result.rowcount


async def existing_user_ids(db: AsyncSession, *user_ids: int) -> set[int]:
    result = await db.execute(select(User.id).where(User.id.in_(user_ids)))
    return set(result.scalars().all())


async def list_followers(db: AsyncSession, user_id: int, limit: int, offset: int):
    """Users following `user_id`, newest edge first, with the total count."""
    total = await db.scalar(
        select(func.count(Follow.id)).where(Follow.following_id == user_id)
    )
    res = await db.execute(
        select(User, Follow.created_at)
        .join(Follow, Follow.follower_id == User.id)
        .where(Follow.following_id == user_id)
        .order_by(desc(Follow.created_at), desc(Follow.id))
        .limit(limit)
        .offset(offset)
    )
    return res.all(), total or 0


async def list_following(db: AsyncSession, user_id: int, limit: int, offset: int):
    """Users that `user_id` follows, newest edge first, with the total count."""
    total = await db.scalar(
        select(func.count(Follow.id)).where(Follow.follower_id == user_id)
    )
    res = await db.execute(
        select(User, Follow.created_at)
        .join(Follow, Follow.following_id == User.id)
        .where(Follow.follower_id == user_id)
        .order_by(desc(Follow.created_at), desc(Follow.id))
        .limit(limit)
        .offset(offset)
    )
    return res.all(), total or 0


async def reconcile_counters(db: AsyncSession) -> int:
    """Recompute both counters from the edge set; returns how many users drifted.

    Repair tool only: FollowService maintains the counters incrementally.
    """
    followers = (
        select(func.count(Follow.id))
        .where(Follow.following_id == User.id)
        .scalar_subquery()
    )
    following = (
        select(func.count(Follow.id))
        .where(Follow.follower_id == User.id)
        .scalar_subquery()
    )
    result = await db.execute(
        update(User)
        .where(or_(User.followers_count != followers, User.following_count != following))
        .values(followers_count=followers, following_count=following)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0
