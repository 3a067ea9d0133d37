import json
import logging

from django.core.cache import cache

from src.profiles.schemas import PROFILE_METADATA_KIND

logger = logging.getLogger(__name__)

IDENTITY_SESSION_KEY = "pubkey"
CUSTOM_KEYS_SESSION_KEY = "profile_custom_keys"


def profile_event_cache_key(pubkey: str, kind: int = PROFILE_METADATA_KIND) -> str:
    return f"profiles:event:{kind}:{pubkey}"


def history_cache_key(container: str, kind: int) -> str:
    return f"profiles:history:{container}:{kind}"


def profile_cached_event_get(*, pubkey: str, kind: int = PROFILE_METADATA_KIND) -> dict | None:
    """Last known event of `kind` for this identity, as stored by the relay fetcher."""
    event = cache.get(profile_event_cache_key(pubkey, kind))
    return event if isinstance(event, dict) else None


def profile_cached_get(*, pubkey: str, kind: int = PROFILE_METADATA_KIND) -> dict | None:
    """
    Parsed content of the cached profile event, keys in stored order.
    None when nothing is cached or the content is not a JSON object.
    """
    event = profile_cached_event_get(pubkey=pubkey, kind=kind)
    if not event:
        return None
    try:
        content = json.loads(event.get("content") or "")
    except (TypeError, ValueError):
        logger.warning("Cached kind-%s event for %s has unreadable content", kind, pubkey)
        return None
    if not isinstance(content, dict):
        logger.warning("Cached kind-%s event for %s is not a JSON object", kind, pubkey)
        return None
    return content


def identity_pubkey_get(session) -> str | None:
    pubkey = session.get(IDENTITY_SESSION_KEY)
    return pubkey or None


def session_custom_keys_get(session) -> list[str]:
    return list(session.get(CUSTOM_KEYS_SESSION_KEY) or [])
