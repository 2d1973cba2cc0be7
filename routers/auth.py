from typing import Optional

from fastapi import APIRouter, Depends, Response

from accounts import AccountStore, AuthService, public_user
from config import JWT_EXPIRE_DAYS, PRODUCTION
from database import serialize_doc
from deps import current_account, get_accounts, get_auth_service
from errors import ValidationError, envelope
from schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdatePasswordRequest,
    UpdateProfileRequest,
)
from security import create_token

router = APIRouter(prefix="/api/auth", tags=["auth"])


def token_response(user: dict, response: Response) -> dict:
    token = create_token(user)
    response.set_cookie(
        "token",
        token,
        httponly=True,
        secure=PRODUCTION,
        samesite="none" if PRODUCTION else "lax",
        max_age=JWT_EXPIRE_DAYS * 24 * 60 * 60,
        path="/",
    )
    return {"success": True, "token": token, "data": {"user": serialize_doc(public_user(user))}}


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, response: Response, auth: AuthService = Depends(get_auth_service)):
    user = auth.register(payload)
    return token_response(user, response)


@router.post("/login")
def login(payload: LoginRequest, response: Response, auth: AuthService = Depends(get_auth_service)):
    user = auth.login(payload.email, payload.password)
    return token_response(user, response)


@router.post("/logout")
def logout(response: Response, user: dict = Depends(current_account)):
    response.delete_cookie("token", path="/")
    return envelope(message="Logged out successfully")


@router.get("/me")
def me(user: dict = Depends(current_account), accounts: AccountStore = Depends(get_accounts)):
    return envelope({"user": serialize_doc(public_user(accounts.with_addresses(user)))})


@router.get("/verify-email")
def verify_email(token: Optional[str] = None, auth: AuthService = Depends(get_auth_service)):
    user = auth.verify_email(token)
    return envelope(
        {"user": {"email": user["email"], "is_email_verified": user["is_email_verified"]}},
        message="Email verified successfully",
    )


@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    auth.forgot_password(payload.email)
    return envelope(message="Password reset email sent")


@router.post("/reset-password")
def reset_password(
    payload: ResetPasswordRequest, response: Response, auth: AuthService = Depends(get_auth_service)
):
    user = auth.reset_password(payload.token, payload.password)
    return token_response(user, response)


@router.put("/update-password")
def update_password(
    payload: UpdatePasswordRequest,
    response: Response,
    user: dict = Depends(current_account),
    auth: AuthService = Depends(get_auth_service),
):
    if not payload.current_password or not payload.new_password:
        raise ValidationError("Please provide current and new password")
    user = auth.update_password(user, payload.current_password, payload.new_password)
    return token_response(user, response)


@router.put("/update-profile")
def update_profile(
    payload: UpdateProfileRequest,
    user: dict = Depends(current_account),
    auth: AuthService = Depends(get_auth_service),
):
    user = auth.update_profile(user, payload)
    return envelope({"user": serialize_doc(public_user(user))})
