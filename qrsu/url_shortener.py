"""Short link issuance backed by the async SQLAlchemy store."""
import random
import re
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from . import config
from .errors import PersistenceFailure
from .models import ShortLink

# Base62 alphabet for short code generation
SHORT_CODE_CHARS = 'abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'
SHORT_CODE_LENGTH = 5
SHORT_CODE_PATTERN = re.compile(r"[A-Za-z0-9]{1,16}")

MAX_ATTEMPTS = 10

def generate_short_code(length: int = SHORT_CODE_LENGTH) -> str:
    """Generate a random short code using base62 characters"""
    return ''.join(random.choices(SHORT_CODE_CHARS, k=length))

async def _pick_short_code(db: AsyncSession, ensure_unique: bool) -> str:
    if not ensure_unique:
        return generate_short_code()

    for _ in range(MAX_ATTEMPTS):
        potential_code = generate_short_code()
        if await db.get(ShortLink, potential_code) is None:
            return potential_code
        print(f"[SHORTENER] Short code collision: {potential_code}")

    raise PersistenceFailure("Could not generate a unique short code, please try again.")

async def create_short_url(
    db: AsyncSession,
    long_url: str,
    domain: Optional[str] = None,
    ensure_unique: Optional[bool] = None,
) -> Dict[str, Any]:
    """
    Issue a new short code for an already validated URL.

    Every call creates a new record, even for a URL seen before. The write
    is create-or-overwrite, so without ensure_unique the last writer wins
    on a code collision.

    Args:
        db: Database session
        long_url: Normalized URL to shorten
        domain: Short link domain, defaults to SHORT_URL_DOMAIN
        ensure_unique: Regenerate codes already in the store, defaults to
            SHORTEN_ENSURE_UNIQUE

    Returns:
        dict: shortCode, longURL, shortUrl and createdAt

    Raises:
        PersistenceFailure: the store rejected the write
    """
    domain = domain or config.SHORT_URL_DOMAIN
    if ensure_unique is None:
        ensure_unique = config.SHORTEN_ENSURE_UNIQUE

    try:
        short_code = await _pick_short_code(db, ensure_unique)
        link = ShortLink(
            code=short_code,
            long_url=long_url,
            created_at=datetime.now(timezone.utc),
        )
        await db.merge(link)
        await db.commit()
    except SQLAlchemyError as e:
        print(f"[SHORTENER] Failed to save short link for {long_url}: {e}")
        await db.rollback()
        raise PersistenceFailure() from e

    short_url = f"https://{domain}/{link.code}"
    print(f"[SHORTENER] {short_url} -> {long_url}")

    return {
        "shortCode": link.code,
        "longURL": link.long_url,
        "shortUrl": short_url,
        "createdAt": link.created_at,
    }

async def get_original_url(db: AsyncSession, short_code: str) -> Optional[str]:
    """Get original URL by short code"""
    if not SHORT_CODE_PATTERN.fullmatch(short_code):
        return None

    link = await db.get(ShortLink, short_code)
    if link:
        return link.long_url

    return None
