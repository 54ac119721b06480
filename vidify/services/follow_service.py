import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import (
    AlreadyExists,
    InvalidOperation,
    LedgerError,
    NotFollowing,
    NotFound,
    StorageFailure,
)
from . import follow_store

logger = logging.getLogger(__name__)


class FollowService:
    """
    Owns follow edges and keeps the denormalized follower/following counters
    on `users` in step with them.

    The edge insert (or delete) and both counter updates run in a single
    transaction on the injected session. Duplicate follows are decided by the
    `uq_follows_pair` constraint, never by a read before the insert, so
    concurrent follows of the same pair produce exactly one edge.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def follow(self, follower_id: int, following_id: int) -> None:
        if follower_id == following_id:
            raise InvalidOperation()

        try:
            created = await follow_store.create_edge_if_absent(
                self.db, follower_id, following_id)
            if not created:
                raise AlreadyExists()

            for user_id, field in ((follower_id, "following"), (following_id, "followers")):
                if not await follow_store.increment_counter(self.db, user_id, field, 1):
                    raise NotFound(f"User {user_id} not found")

            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except IntegrityError as exc:
            await self.db.rollback()
            raise await self._classify_integrity_error(follower_id, following_id) from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(
                f"Follow {follower_id} -> {following_id} failed: {exc}")
            raise StorageFailure() from exc

        logger.info(f"User {follower_id} followed user {following_id}")

    async def unfollow(self, follower_id: int, following_id: int) -> None:
        try:
            deleted = await follow_store.delete_edge(self.db, follower_id, following_id)
            if deleted == 0:
                raise NotFollowing()

            for user_id, field in ((follower_id, "following"), (following_id, "followers")):
                if not await follow_store.increment_counter(self.db, user_id, field, -1):
                    logger.error(
                        f"Counter invariant violated: {field}_count of user {user_id} "
                        f"would drop below zero on unfollow {follower_id} -> {following_id}")

            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(
                f"Unfollow {follower_id} -> {following_id} failed: {exc}")
            raise StorageFailure() from exc

        logger.info(f"User {follower_id} unfollowed user {following_id}")

    async def is_following(self, follower_id: int, following_id: int) -> bool:
        try:
            edge = await follow_store.find_edge(self.db, follower_id, following_id)
        except SQLAlchemyError as exc:
            raise StorageFailure() from exc
        return edge is not None

    async def status(self, current_user_id: int, target_user_id: int) -> dict:
        return {"is_following": await self.is_following(current_user_id, target_user_id)}

    async def followers(self, user_id: int, limit: int = 20, offset: int = 0):
        await self._require_users(user_id)
        return await follow_store.list_followers(self.db, user_id, limit, offset)

    async def following(self, user_id: int, limit: int = 20, offset: int = 0):
        await self._require_users(user_id)
        return await follow_store.list_following(self.db, user_id, limit, offset)

    async def _require_users(self, *user_ids: int) -> None:
        found = await follow_store.existing_user_ids(self.db, *user_ids)
        missing = [uid for uid in user_ids if uid not in found]
        if missing:
            raise NotFound(f"User {missing[0]} not found")

    async def _classify_integrity_error(self, follower_id: int, following_id: int) -> LedgerError:
        """Name the constraint a failed follow ran into."""
        if await follow_store.find_edge(self.db, follower_id, following_id) is not None:
            return AlreadyExists()
        try:
            await self._require_users(follower_id, following_id)
        except NotFound as exc:
            return exc
        return StorageFailure("Follow rejected by the database")
