# main.py
from contextlib import asynccontextmanager
from datetime import timedelta
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import sys
import os
PROJECT_ROOT = os.path.abspath(os.path.dirname(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from src.core.config import settings
from src.core.database import SessionLocal, init_db
from src.core.errors import register_exception_handlers
from src.core.tasks import ThreadPoolTaskRunner
from src.auth.cookie import CookieBinding
from src.auth.google_token import GoogleIdentityVerifier
from src.auth.router import router as auth_router
from src.sessions.manager import SessionManager

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

task_runner = ThreadPoolTaskRunner(max_workers=settings.BACKGROUND_WORKERS)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up...")
    init_db()
    yield
    task_runner.shutdown(wait=True)
    logger.info("Background workers stopped.")

app = FastAPI(
    title="Session Auth Backend",
    description="Google sign-in with server-side sessions bound to a signed cookie.",
    version="1.0.0",
    lifespan=lifespan,
)

# Components, configured explicitly from settings
cookies = CookieBinding(
    settings.SESSION_SECRET_KEY,
    cookie_name=settings.SESSION_COOKIE_NAME,
    max_age_seconds=settings.SESSION_TTL_SECONDS,
    secure=settings.SESSION_COOKIE_SECURE,
)
app.state.cookies = cookies
app.state.identity_verifier = GoogleIdentityVerifier(settings.GOOGLE_CLIENT_ID, issuer=settings.GOOGLE_ISSUER)
app.state.session_manager = SessionManager(
    SessionLocal,
    task_runner,
    ttl=timedelta(days=settings.SESSION_TTL_DAYS),
    use_token_expiry=settings.SESSION_USE_TOKEN_EXPIRY,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_URLS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
    max_age=12 * 3600,
)

register_exception_handlers(app, cookie_clearer=cookies.clear)

logger.info("Including routers...")
app.include_router(auth_router)

@app.get("/", tags=["Status"])
def root():
    return {"message": "Session Auth Backend is running!"}

# if __name__ == "__main__":
#     import uvicorn
#     uvicorn.run("main:app", host="0.0.0.0", port=8080, reload=True)
