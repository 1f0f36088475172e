"""URL validation: syntax, public-suffix extension and Web Risk safety lookup."""
import asyncio
from typing import Any, Dict, Optional

import aiohttp
import tldextract
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import Url

from . import config
from .errors import InvalidURL, UnrecognizedExtension, UnsafeURL

THREAT_TYPES = ("MALWARE", "SOCIAL_ENGINEERING", "UNWANTED_SOFTWARE")

# Bundled public suffix snapshot only, never fetched over the network
_suffix_extractor = tldextract.TLDExtract(suffix_list_urls=())


class ValidationResult(BaseModel):
    """Judgment of a single input string. Never persisted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    normalized_url: str
    is_valid: bool
    is_safe: bool
    has_valid_extension: bool

    def raise_for_status(self, allow_unrecognized_extension: bool = False) -> None:
        """Raise the matching error kind unless the URL can be used as is"""
        if not self.is_valid:
            raise InvalidURL()
        if not self.is_safe:
            raise UnsafeURL()
        if not self.has_valid_extension and not allow_unrecognized_extension:
            raise UnrecognizedExtension()


def normalize_url(url: str) -> str:
    """Strip the input and add https:// if no protocol is specified"""
    url = url.strip()
    if not url.lower().startswith(("http://", "https://")):
        url = "https://" + url
    return url


def is_valid_syntax(url: str) -> bool:
    """Structure and host only; no length limit, long tracking URLs are fine"""
    try:
        parsed = Url(url)
    except ValidationError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


def has_valid_extension(url: str) -> bool:
    """True if the host ends in a known public suffix (.com, .co.uk, ...)"""
    return bool(_suffix_extractor(url).suffix)


async def _search_uri(url: str, api_key: str) -> Dict[str, Any]:
    """Query the Web Risk uris:search endpoint and return the decoded JSON"""
    timeout = aiohttp.ClientTimeout(total=config.WEB_RISK_TIMEOUT)
    params = [("key", api_key), ("uri", url)]
    params.extend(("threatTypes", threat_type) for threat_type in THREAT_TYPES)

    async with aiohttp.ClientSession(timeout=timeout) as session:
        async with session.get(config.WEB_RISK_API_URL, params=params) as response:
            # Error bodies come back with 4xx statuses, decode them anyway
            data = await response.json(content_type=None)
            if response.status >= 400 and not (isinstance(data, dict) and data.get("error")):
                raise aiohttp.ClientResponseError(
                    response.request_info,
                    response.history,
                    status=response.status,
                    message=response.reason or "",
                )
            return data


async def check_url_safety(url: str, api_key: Optional[str] = None) -> bool:
    """
    Check a URL against the Web Risk API.

    Fails closed: a missing API key, a network or decoding error, an error
    status, or an error object in the response all report the URL as unsafe.

    Args:
        url: Normalized URL to look up
        api_key: Web Risk API key, defaults to the configured one

    Returns:
        bool: True only when the API answered and reported no threat
    """
    api_key = api_key or config.WEB_RISK_API_KEY
    if not api_key:
        print("[VALIDATOR] No Web Risk API key configured, treating URL as unsafe")
        return False

    try:
        data = await _search_uri(url, api_key)
    except asyncio.TimeoutError:
        print(f"[VALIDATOR] Web Risk lookup timed out for {url}")
        return False
    except (aiohttp.ClientError, OSError, ValueError) as e:
        print(f"[VALIDATOR] Error checking URL safety for {url}: {e}")
        return False

    if not isinstance(data, dict):
        print(f"[VALIDATOR] Unexpected Web Risk response: {data!r}")
        return False

    error = data.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else error
        print(f"[VALIDATOR] Web Risk API error: {message}")
        return False

    threat = data.get("threat")
    if threat:
        print(f"[VALIDATOR] Threat found for {url}: {threat}")
        return False

    return True


async def validate_url(url: str) -> ValidationResult:
    """Validate a raw URL string; always returns a definite answer"""
    normalized = normalize_url(url)

    if not is_valid_syntax(normalized):
        print(f"[VALIDATOR] Invalid URL syntax: {normalized}")
        return ValidationResult(
            normalized_url=normalized,
            is_valid=False,
            is_safe=False,
            has_valid_extension=False,
        )

    valid_extension = has_valid_extension(normalized)
    is_safe = await check_url_safety(normalized)
    print(f"[VALIDATOR] {normalized}: extension={valid_extension}, safe={is_safe}")

    return ValidationResult(
        normalized_url=normalized,
        is_valid=True,
        is_safe=is_safe,
        has_valid_extension=valid_extension,
    )
