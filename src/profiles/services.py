import json
import logging
from datetime import datetime
from importlib import resources
from typing import Mapping

import jsonschema
from asgiref.sync import sync_to_async
from django.core.cache import cache
from django.utils import timezone

from src.core.exceptions import DomainValidationError
from src.profiles.collaborators import HistoryRefresher, Signer
from src.profiles.field_keys import merge_session_keys, resolve_keys
from src.profiles.schemas import PROFILE_METADATA_KIND, ProfileEvent
from src.profiles.selectors import profile_cached_event_get, profile_event_cache_key

logger = logging.getLogger(__name__)


def validate_profile_event(event: dict) -> None:
    with resources.files("src.profiles.jsonschemas").joinpath("profile_event.schema.json").open("rb") as f:
        schema = json.load(f)
    jsonschema.validate(instance=event, schema=schema)


def profile_content_build(form_values: Mapping[str, str], cached: Mapping[str, object] | None) -> dict[str, str]:
    """
    Outgoing content, in form order.
    Keys come from the current cached profile plus anything the form carries;
    empty values are left out so clearing an input removes the field.
    """
    keys = merge_session_keys(resolve_keys(cached), form_values.keys())
    content: dict[str, str] = {}
    for k in keys:
        v = form_values.get(k)
        if isinstance(v, str) and v != "":
            content[k] = v
    return content


def profile_event_build(content: Mapping[str, str], *, pubkey: str, now: datetime | None = None) -> ProfileEvent:
    created_at = int((now or timezone.now()).timestamp())
    return ProfileEvent(
        pubkey=pubkey,
        kind=PROFILE_METADATA_KIND,
        created_at=created_at,
        content=json.dumps(dict(content), separators=(",", ":"), ensure_ascii=False),
        tags=[],
    )


async def profile_submit(
    *,
    form_values: Mapping[str, str],
    cached: Mapping[str, object] | None,
    pubkey: str,
    ack_handle: str,
    signer: Signer,
    history: HistoryRefresher,
    history_container: str,
) -> bool:
    """
    Build the kind-0 event from the edited values and hand it to the signer.
    Returns True when the signer reports the event as published. Failures are
    terminal for this attempt: nothing is refreshed, nothing is raised.
    """
    content = profile_content_build(form_values, cached)
    event = profile_event_build(content, pubkey=pubkey)

    try:
        validate_profile_event(event.model_dump())
    except jsonschema.ValidationError as exc:
        logger.error("Refusing to hand over malformed profile event (%s): %s", ack_handle, exc.message)
        return False

    try:
        published = bool(await signer.submit(event, ack_handle))
    except Exception:
        logger.exception("Signer failed for %s", ack_handle)
        published = False

    if not published:
        logger.info("Profile update not published (%s)", ack_handle)
        return False

    logger.info("Profile update published for %s (%d fields)", pubkey, len(content))
    try:
        await sync_to_async(history.reload)(history_container, PROFILE_METADATA_KIND)
    except Exception:
        # Already published; a stale history list must not turn this into a failure
        logger.exception("History refresh failed for %s", history_container)
    return True


def profile_event_cache_store(*, event: Mapping[str, object], pubkey: str) -> bool:
    """
    Remember a fetched kind-0 event for `pubkey`.
    Replaceable-event rule: only a strictly newer created_at replaces the cached one.
    """
    if event.get("kind") != PROFILE_METADATA_KIND:
        raise DomainValidationError(message="Only kind-0 events are cached", code="UNSUPPORTED_KIND")
    if event.get("pubkey") != pubkey:
        raise DomainValidationError(message="Event belongs to another identity", code="PUBKEY_MISMATCH")
    created_at = event.get("created_at")
    if not isinstance(created_at, int) or not isinstance(event.get("content"), str):
        raise DomainValidationError(message="Malformed event", code="MALFORMED_EVENT")

    current = profile_cached_event_get(pubkey=pubkey)
    if current and isinstance(current.get("created_at"), int) and current["created_at"] >= created_at:
        return False
    cache.set(profile_event_cache_key(pubkey), dict(event), timeout=None)
    return True
