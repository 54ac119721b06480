import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import AlreadyExists, LedgerError, NotFound, StorageFailure
from ..models import Content, Interaction

logger = logging.getLogger(__name__)

REACTIONS = ("like", "dislike")

_COUNTER_COLUMNS = {
    "like": Content.like_count,
    "dislike": Content.dislike_count,
}


class InteractionService:
    """Like/dislike toggling with like_count/dislike_count kept on `contents`."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def react(self, content_id: int, user_id: int, kind: str) -> dict:
        """
        Apply a like or dislike from `user_id`.

        - no reaction yet: record it
        - same reaction again: remove it (toggle off)
        - opposite reaction: switch it

        Returns the caller's resulting reaction and the content's counters.
        """
        if kind not in REACTIONS:
            raise ValueError(f"Unknown reaction: {kind}")

        try:
            if await self.db.scalar(select(Content.id).where(Content.id == content_id)) is None:
                raise NotFound("Video not found")

            res = await self.db.execute(
                select(Interaction).where(
                    Interaction.content_id == content_id,
                    Interaction.user_id == user_id,
                )
            )
            existing = res.scalar_one_or_none()

            if existing is None:
                self.db.add(Interaction(content_id=content_id,
                            user_id=user_id, type=kind))
                await self.db.flush()
                await self._adjust(content_id, kind, 1)
                reaction: Optional[str] = kind
            elif existing.type == kind:
                await self.db.delete(existing)
                await self.db.flush()
                await self._adjust(content_id, kind, -1)
                reaction = None
            else:
                previous = existing.type
                existing.type = kind
                await self.db.flush()
                await self._adjust(content_id, previous, -1)
                await self._adjust(content_id, kind, 1)
                reaction = kind

            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except IntegrityError as exc:
            # A concurrent request recorded a reaction for the same pair first
            await self.db.rollback()
            raise AlreadyExists("Reaction already recorded") from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(
                f"Reaction {kind} by user {user_id} on content {content_id} failed: {exc}")
            raise StorageFailure() from exc

        counts = await self._counts(content_id)
        return {"reaction": reaction, **counts}

    async def summary(self, content_id: int, user_id: int) -> dict:
        counts = await self._counts(content_id)
        mine = await self.db.scalar(
            select(Interaction.type).where(
                Interaction.content_id == content_id,
                Interaction.user_id == user_id,
            )
        )
        return {
            "total_likes": counts["like_count"],
            "total_dislikes": counts["dislike_count"],
            "liked_by_me": mine == "like",
            "disliked_by_me": mine == "dislike",
        }

    async def _adjust(self, content_id: int, kind: str, delta: int) -> None:
        column = _COUNTER_COLUMNS[kind]
        stmt = update(Content).where(Content.id == content_id)
        if delta < 0:
            stmt = stmt.where(column > 0)
        result = await self.db.execute(stmt.values({column: column + delta}))
        if result.rowcount != 1:
            logger.error(
                f"Counter invariant violated: {kind}_count of content {content_id} "
                f"could not change by {delta}")

    async def _counts(self, content_id: int) -> dict:
        res = await self.db.execute(
            select(Content.like_count, Content.dislike_count).where(
                Content.id == content_id)
        )
        row = res.one_or_none()
        if row is None:
            raise NotFound("Video not found")
        return {"like_count": row.like_count, "dislike_count": row.dislike_count}
