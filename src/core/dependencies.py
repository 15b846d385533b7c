# src/core/dependencies.py
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from typing import Generator

from src.core.database import get_db_session
from src.auth.cookie import CookieBinding
from src.auth.gate import AuthGate
from src.auth.google_token import IdentityVerifier
from src.auth.schemas import CookiePayload
from src.auth.service import AuthService
from src.sessions.manager import SessionManager

# Request-scoped database session
def get_db() -> Generator[Session, None, None]:
    with get_db_session() as db:
        yield db

# Components are built once in main.py and kept on app.state
def get_identity_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.identity_verifier

def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager

def get_cookie_binding(request: Request) -> CookieBinding:
    return request.app.state.cookies

def get_auth_gate(
    session_manager: SessionManager = Depends(get_session_manager),
    cookies: CookieBinding = Depends(get_cookie_binding),
) -> AuthGate:
    return AuthGate(session_manager, cookies)

def get_auth_service(
    db: Session = Depends(get_db),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    session_manager: SessionManager = Depends(get_session_manager),
) -> AuthService:
    return AuthService(db, verifier, session_manager)

# Guard for protected routes: rejects the request unless its session is live
def require_session(request: Request, gate: AuthGate = Depends(get_auth_gate)) -> CookiePayload:
    return gate.authenticate(request)
