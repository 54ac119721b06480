from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from .database import get_db
from .exceptions import LedgerError
from .services.follow_service import FollowService
from .services.interaction_service import InteractionService

# Error kind -> response status
LEDGER_ERROR_STATUS = {
    "invalid_operation": status.HTTP_400_BAD_REQUEST,
    "already_exists": status.HTTP_409_CONFLICT,
    "not_following": status.HTTP_409_CONFLICT,
    "not_found": status.HTTP_404_NOT_FOUND,
    "storage_failure": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_follow_service(db: AsyncSession = Depends(get_db)) -> FollowService:
    return FollowService(db)


def get_interaction_service(db: AsyncSession = Depends(get_db)) -> InteractionService:
    return InteractionService(db)


def ledger_http_error(exc: LedgerError) -> HTTPException:
    """Translate a ledger failure into the matching HTTP error"""
    return HTTPException(
        status_code=LEDGER_ERROR_STATUS.get(
            exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=exc.message,
    )
