from typing import Optional
from urllib.parse import urlparse

ALLOWED_SCHEME = "https"
ALLOWED_HOST = "chatgpt.com"
SHARE_PATH_PREFIX = "/share/"


def validate_share_url(url) -> dict:
    """
    Checks that url is exactly https://chatgpt.com/share/<non-empty-id>.
    Rules are checked in order and the first failure wins.
    Returns {"valid": True} or {"valid": False, "error": "..."}.
    """
    if not url or not isinstance(url, str):
        return {"valid": False, "error": "URL is required."}

    try:
        parsed = urlparse(url.strip())
        # Accessing .port raises on malformed ports like "chatgpt.com:abc"
        parsed.port
    except ValueError:
        return {"valid": False, "error": "Invalid URL."}

    if not parsed.scheme or not parsed.netloc:
        return {"valid": False, "error": "Invalid URL."}

    if parsed.scheme.lower() != ALLOWED_SCHEME:
        return {"valid": False, "error": "Only HTTPS URLs are allowed."}

    # hostname is lowercased by urlparse and excludes credentials and port
    if parsed.hostname != ALLOWED_HOST or parsed.port not in (None, 443) or "@" in parsed.netloc:
        return {"valid": False, "error": "Only chatgpt.com share links are supported."}

    if not parsed.path.startswith(SHARE_PATH_PREFIX):
        return {"valid": False, "error": "URL must be a share link (e.g. https://chatgpt.com/share/...)."}

    share_id = parsed.path[len(SHARE_PATH_PREFIX):]
    if share_id.endswith("/"):
        share_id = share_id[:-1]
    if not share_id:
        return {"valid": False, "error": "Share ID is missing."}

    return {"valid": True}


def share_id_from_url(url: str) -> Optional[str]:
    """Returns the <id> part of a valid share link, None otherwise."""
    if not validate_share_url(url)["valid"]:
        return None
    path = urlparse(url.strip()).path[len(SHARE_PATH_PREFIX):]
    return path[:-1] if path.endswith("/") else path
