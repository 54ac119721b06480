import random
import string
from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from ..models import User, OTPCode
from ..config import settings
from ..exceptions import EmailDeliveryError
from .email_service import send_otp_email


class OTPService:
    @staticmethod
    def generate_otp() -> str:
        """Generate a random 6-digit OTP code"""
        return ''.join(random.choices(string.digits, k=6))

    @staticmethod
    async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def register(db: AsyncSession, username: str, email: str) -> tuple[bool, Optional[OTPCode]]:
        """Create an unverified user and email them an OTP.

        The user is only committed once the email went out; a delivery
        failure rolls the registration back and re-raises.
        Returns (False, None) when the email is already registered.
        """
        if await OTPService.get_user_by_email(db, email) is not None:
            return False, None

        user = User(username=username, email=email, is_verified=False)
        db.add(user)
        await db.flush()

        otp = await OTPService.create_otp(db, user.id, commit=False)
        await OTPService._send_then_commit(db, email, otp)
        return True, otp

    @staticmethod
    async def login(db: AsyncSession, email: str) -> tuple[bool, Optional[OTPCode]]:
        """Email a fresh OTP to a registered user; (False, None) if unknown."""
        user = await OTPService.get_user_by_email(db, email)
        if user is None:
            return False, None

        otp = await OTPService.create_otp(db, user.id, commit=False)
        await OTPService._send_then_commit(db, email, otp)
        return True, otp

    @staticmethod
    async def _send_then_commit(db: AsyncSession, email: str, otp: OTPCode) -> None:
        try:
            await send_otp_email(email, otp.code)
        except EmailDeliveryError:
            await db.rollback()
            raise
        await db.commit()
        await db.refresh(otp)

    @staticmethod
    async def create_otp(db: AsyncSession, user_id: int, commit: bool = True) -> OTPCode:
        """Create a new OTP code for a user

        With commit=False the code is only flushed; the caller owns the commit.
        """
        # Invalidate any existing unused OTP codes for this user
        stmt = select(OTPCode).where(
            and_(
                OTPCode.user_id == user_id,
                OTPCode.is_used == False,
                OTPCode.expires_at > datetime.now(timezone.utc)
            )
        )
        result = await db.execute(stmt)
        existing_otps = result.scalars().all()

        for otp in existing_otps:
            otp.is_used = True

        expires_at = datetime.now(timezone.utc) + \
            timedelta(minutes=settings.otp_expiry_minutes)
        otp = OTPCode(
            user_id=user_id,
            code=OTPService.generate_otp(),
            expires_at=expires_at
        )

        db.add(otp)
        if not commit:
            await db.flush()
            return otp
        await db.commit()
        await db.refresh(otp)

        return otp

    @staticmethod
    async def verify_otp(
        db: AsyncSession, email: str, otp_code: str, username: Optional[str] = None
    ) -> tuple[bool, Optional[User]]:
        """Verify OTP code and return success status and user"""
        user = await OTPService.get_user_by_email(db, email)
        if not user:
            return False, None

        # Get the most recent unused OTP for this user
        stmt = select(OTPCode).where(
            and_(
                OTPCode.user_id == user.id,
                OTPCode.code == otp_code,
                OTPCode.is_used == False,
                OTPCode.expires_at > datetime.now(timezone.utc)
            )
        ).order_by(OTPCode.created_at.desc(), OTPCode.id.desc())

        result = await db.execute(stmt)
        otp = result.scalars().first()

        if not otp:
            return False, user

        otp.is_used = True
        user.is_verified = True
        if username:
            user.username = username
        await db.commit()
        await db.refresh(user)

        return True, user
