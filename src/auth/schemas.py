# src/auth/schemas.py
from datetime import datetime
from pydantic import BaseModel

class GoogleLoginRequest(BaseModel):
    credential: str = ""

class LoginResponse(BaseModel):
    email: str
    name: str
    picture: str
    isLoggedIn: bool = True
    expire_session: datetime
    activeSessions: int

class LogoutResponse(BaseModel):
    logout: bool = True

class ProfileResponse(BaseModel):
    email: str
    name: str
    picture: str
    activeSessions: int

class CookiePayload(BaseModel):
    """Contents of the signed session cookie. Display cache only, never trusted for authorization."""
    user_id: str = ""
    email: str = ""
    name: str = ""
    picture: str = ""
    auth: bool = False
    session_id: str = ""
