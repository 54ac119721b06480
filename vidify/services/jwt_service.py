from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from ..config import settings
from ..database import get_db
from ..models import User

# JWT token scheme
security = HTTPBearer()


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class JWTService:
    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token"""
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.jwt_expiry_minutes))
        to_encode.update({"exp": expire})
        return jwt.encode(
            to_encode,
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm
        )

    @staticmethod
    def create_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Create a bearer token whose subject is the user id"""
        data = {"sub": str(user.id), "email": user.email}
        return JWTService.create_access_token(data, expires_delta)

    @staticmethod
    def verify_token(token: str) -> dict:
        """Verify and decode a JWT token"""
        try:
            return jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm]
            )
        except JWTError:
            raise _credentials_error()

    @staticmethod
    async def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: AsyncSession = Depends(get_db)
    ) -> User:
        """Get the current authenticated user from JWT token"""
        payload = JWTService.verify_token(credentials.credentials)

        user_id_str = payload.get("sub")
        if user_id_str is None:
            raise _credentials_error()

        try:
            user_id = int(user_id_str)
        except (ValueError, TypeError):
            raise _credentials_error("Invalid user ID in token")

        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()

        if user is None:
            raise _credentials_error("User not found")
        if not user.is_verified:
            raise _credentials_error("User not verified")

        return user
