"""Runtime configuration loaded from the environment and .env file."""
import os

from dotenv import load_dotenv

load_dotenv()

WEB_RISK_API_URL = "https://webrisk.googleapis.com/v1/uris:search"
WEB_RISK_API_KEY = os.getenv("WEB_RISK_API_KEY") or os.getenv("GOOGLE_WEB_RISK_API_KEY", "")
WEB_RISK_TIMEOUT = float(os.getenv("WEB_RISK_TIMEOUT", 5))

SHORT_URL_DOMAIN = os.getenv("SHORT_URL_DOMAIN", "qrsu.io")
SHORTEN_ENSURE_UNIQUE = os.getenv("SHORTEN_ENSURE_UNIQUE", "false").lower() == "true"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./qrsu.db")

PORT = int(os.getenv("PORT", 8000))

if not WEB_RISK_API_KEY:
    print("[CONFIG] WARNING: WEB_RISK_API_KEY is not set, every URL will be reported unsafe")
