from fastapi import APIRouter

from mentorship import onboarding
from mentorship import password_reset
from mentorship.schemas import ForgotPassword
from mentorship.schemas import GoogleSignIn
from mentorship.schemas import Login
from mentorship.schemas import ResetPassword
from mentorship.schemas import Signup

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/google")
def google_sign_in(body: GoogleSignIn):
    return onboarding.google_sign_in(body.model_dump(exclude_unset=True))


@router.post("/login")
def login(body: Login):
    return onboarding.login(body.email, body.password)


@router.post("/signup", status_code=201)
def signup(body: Signup):
    return onboarding.signup(body.model_dump(exclude_unset=True))


@router.post("/forgot-password")
def forgot_password(body: ForgotPassword):
    return password_reset.request_reset(body.email)


@router.post("/reset-password")
def reset_password(body: ResetPassword):
    return password_reset.reset_password(body.token, body.password)


__all__ = ["router"]
