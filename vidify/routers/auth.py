import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from ..database import get_db
from ..exceptions import EmailDeliveryError
from ..schemas import RegisterRequest, LoginRequest, OTPVerify, OTPResponse, AuthResponse, UserResponse
from ..services.otp_service import OTPService
from ..services.jwt_service import JWTService
from ..config import settings

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["authentication"],
    responses={
        400: {"description": "Invalid or expired OTP code"},
        409: {"description": "Email already registered"},
        503: {"description": "Email service unavailable"},
    }
)


def _otp_response(message: str, otp) -> OTPResponse:
    return OTPResponse(
        success=True,
        message=message,
        expires_in_minutes=settings.otp_expiry_minutes,
        # Only expose the code in debug mode
        otp=otp.code if settings.debug else None,
    )


@router.post("/register", response_model=OTPResponse)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """
    Register a new account and email a one-time passcode.

    **Authentication Required:** No

    **Response:**
    - `message`: confirmation that the OTP was sent
    - `expires_in_minutes`: how long the OTP is valid
    - `otp`: the code itself (debug mode only)
    """
    try:
        created, otp = await OTPService.register(db, payload.username, payload.email)
    except EmailDeliveryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))

    if not created:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )
    return _otp_response("OTP sent to email", otp)


@router.post("/login", response_model=OTPResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    """
    Email a fresh one-time passcode to a registered account.
    """
    try:
        found, otp = await OTPService.login(db, payload.email)
    except EmailDeliveryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))

    if not found:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Email not registered"
        )
    return _otp_response("OTP sent to email", otp)


@router.post("/verify-otp", response_model=AuthResponse)
async def verify_otp(payload: OTPVerify, db: AsyncSession = Depends(get_db)):
    """
    Verify OTP code and authenticate user.

    **Response:**
    - `token`: JWT for authenticated requests
    - `user`: the verified account

    **Usage:**
    ```
    Authorization: Bearer <token>
    ```
    """
    ok, user = await OTPService.verify_otp(db, payload.email, payload.otp, payload.username)
    if not ok:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired OTP code"
        )

    logger.info(f"User {user.id} verified via OTP")
    return AuthResponse(
        success=True,
        token=JWTService.create_token(user),
        user=UserResponse.model_validate(user),
    )
