import logging
import os

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(name)s\n%(message)s\n"
)

logger = logging.getLogger("sitedrop_backend")

# --- Configuration ---
OPENAI_API_KEY      = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL        = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")

NETLIFY_AUTH_TOKEN  = os.getenv("NETLIFY_AUTH_TOKEN", "")
NETLIFY_SITE_ID     = os.getenv("NETLIFY_SITE_ID", "")
NETLIFY_API_BASE    = os.getenv("NETLIFY_API_BASE", "https://api.netlify.com/api/v1")
DEPLOY_TIMEOUT_SECONDS = float(os.getenv("DEPLOY_TIMEOUT_SECONDS", "90"))

DATABASE_URL        = os.getenv("DATABASE_URL", "sqlite:///links.db")
BASE_URL            = os.getenv("BASE_URL", "http://localhost:8000")

RATE_LIMIT_MAX_REQUESTS   = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "8"))
RATE_LIMIT_WINDOW_SECONDS = float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "3600"))


def openai_configured() -> bool:
    return bool(OPENAI_API_KEY)


def netlify_configured() -> bool:
    return bool(NETLIFY_AUTH_TOKEN and NETLIFY_SITE_ID)


def get_db_engine(url: str | None = None):
    url = url or DATABASE_URL

    if url.startswith("sqlite"):
        logger.info(f"[DB] Using SQLite URL: {url}")
        # FastAPI serves sync routes from a threadpool
        return create_engine(url, connect_args={"check_same_thread": False})

    logger.info(f"[DB] Connecting to Postgres at {url.split('@')[-1]}")
    connect_args = {}
    if url.startswith("postgresql+pg8000"):
        # pg8000 supports 'timeout' in seconds
        connect_args["timeout"] = 10
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


def create_session_factory(url: str | None = None) -> sessionmaker:
    engine = get_db_engine(url)
    return sessionmaker(bind=engine, autoflush=False, future=True)
