# src/auth/router.py
import logging
from fastapi import APIRouter, Depends, Request, Response
from . import schemas
from .cookie import CookieBinding
from .gate import AuthGate
from .service import AuthService
from src.core.dependencies import get_auth_gate, get_auth_service, get_cookie_binding, require_session

router = APIRouter(
    prefix="/api",
    tags=["Authentication"],
)
logger = logging.getLogger(__name__)

def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""

@router.post("/login/google", response_model=schemas.LoginResponse)
def login_google(
    payload: schemas.GoogleLoginRequest,
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    cookies: CookieBinding = Depends(get_cookie_binding),
):
    """Signs in with a Google ID token and sets the session cookie."""
    result = auth_service.login(
        payload.credential,
        ip=client_ip(request),
        user_agent=request.headers.get("user-agent", ""),
    )
    cookies.write(response, result.cookie, max_age=result.cookie_max_age)
    return result.response

@router.api_route("/logout", methods=["GET", "POST"], response_model=schemas.LogoutResponse)
def logout(request: Request, response: Response, gate: AuthGate = Depends(get_auth_gate)):
    gate.logout(request, response)
    return schemas.LogoutResponse(logout=True)

@router.get("/profile", response_model=schemas.ProfileResponse)
def get_profile(
    cookie: schemas.CookiePayload = Depends(require_session),
    auth_service: AuthService = Depends(get_auth_service),
):
    return auth_service.profile(cookie)

@router.get("/health", tags=["Status"])
def health():
    return {"status": "ok"}
