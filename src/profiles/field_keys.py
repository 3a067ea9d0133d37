import re
from dataclasses import dataclass
from typing import Iterable, Mapping

# Canonical order of the well-known kind-0 metadata fields
STANDARD_KEYS = [
    "name",
    "nip05",
    "about",
    "picture",
    "banner",
    "lud06",
    "lud16",
]

IMAGE_KEYS = ("picture", "banner")

CUSTOM_KEY_RE = re.compile(r"^[A-Za-z0-9_\-]+$")


class KeyRejection:
    EMPTY = "empty"
    INVALID_CHARACTERS = "invalid-characters"
    RESERVED = "reserved"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class KeyAdmission:
    key: str
    accepted: bool
    reason: str | None = None


def resolve_keys(cached: Mapping[str, object] | None) -> list[str]:
    """
    Ordered field keys for a profile form.
    Cached keys keep their stored order, missing standard keys follow in canonical order.
    """
    if not cached:
        return list(STANDARD_KEYS)
    out: list[str] = []
    for k in cached.keys():
        if k not in out:
            out.append(k)
    for k in STANDARD_KEYS:
        if k not in out:
            out.append(k)
    return out


def merge_session_keys(base: Iterable[str], session_keys: Iterable[str]) -> list[str]:
    out = list(base)
    for k in session_keys:
        if k and k not in out:
            out.append(k)
    return out


def admit_custom_key(candidate: str, existing_keys: Iterable[str]) -> KeyAdmission:
    key = (candidate or "").strip()
    if not key:
        return KeyAdmission(key=key, accepted=False, reason=KeyRejection.EMPTY)
    if not CUSTOM_KEY_RE.match(key):
        return KeyAdmission(key=key, accepted=False, reason=KeyRejection.INVALID_CHARACTERS)
    if key in STANDARD_KEYS:
        return KeyAdmission(key=key, accepted=False, reason=KeyRejection.RESERVED)
    if key in set(existing_keys):
        return KeyAdmission(key=key, accepted=False, reason=KeyRejection.DUPLICATE)
    return KeyAdmission(key=key, accepted=True)
