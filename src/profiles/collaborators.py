"""
Narrow interfaces the profile core talks to, plus the default adapters.

  - Sanitizer          clean(raw) -> markup-safe string
  - AliasDirectory     await resolve(alias) -> public key (NIP-05)
  - Signer             await submit(unsigned_event, ack_handle) -> bool
  - HistoryRefresher   reload(container, kind), fire-and-forget

Adapters are picked from settings (PROFILE_*_CLASS) so tests and deployments
can swap them without touching the core.
"""
from __future__ import annotations

import logging
import re
from typing import Callable, Protocol

import httpx
from django.conf import settings
from django.utils.html import escape
from django.utils.module_loading import import_string

from src.profiles.schemas import ProfileEvent

logger = logging.getLogger(__name__)

# name@domain, or a bare domain meaning "_@domain"
NIP05_RE = re.compile(r"^(?:([\w.+-]+)@)?([\w_-]+(\.[\w_-]+)+)$")


class AliasResolutionError(Exception):
    pass


class AliasDirectory(Protocol):
    async def resolve(self, alias: str) -> str: ...


class Signer(Protocol):
    async def submit(self, event: ProfileEvent, ack_handle: str) -> bool: ...


class HistoryRefresher(Protocol):
    def reload(self, container: str, kind: int) -> None: ...


Sanitizer = Callable[[str], str]


def html_sanitize(raw: str) -> str:
    return str(escape(raw))


def parse_nip05(alias: str) -> tuple[str, str]:
    m = NIP05_RE.match(alias.strip())
    if not m:
        raise AliasResolutionError(f"Malformed NIP-05 identifier: {alias!r}")
    name, domain = m.group(1) or "_", m.group(2)
    return name, domain


class Nip05Directory:
    """NIP-05 lookup: GET https://<domain>/.well-known/nostr.json?name=<name>"""

    def __init__(self, *, timeout: float | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout if timeout is not None else settings.PROFILE_NIP05_TIMEOUT
        self.transport = transport

    async def resolve(self, alias: str) -> str:
        name, domain = parse_nip05(alias)
        url = f"https://{domain}/.well-known/nostr.json"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.get(url, params={"name": name})
            resp.raise_for_status()
            data = resp.json()
        names = data.get("names") if isinstance(data, dict) else None
        pubkey = names.get(name) if isinstance(names, dict) else None
        if not isinstance(pubkey, str) or not pubkey:
            raise AliasResolutionError(f"No binding for {name}@{domain}")
        return pubkey


class RemoteSigner:
    """
    Hands unsigned events to the signing/broadcast service.
    The service signs with the local identity and publishes to relays.
    Any non-2xx answer or transport error reads as "not published".
    """

    def __init__(self, *, url: str | None = None, timeout: float | None = None,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.url = url or settings.PROFILE_SIGNER_URL
        self.timeout = timeout if timeout is not None else settings.PROFILE_SIGNER_TIMEOUT
        self.transport = transport

    async def submit(self, event: ProfileEvent, ack_handle: str) -> bool:
        payload = {"event": event.model_dump(), "ack_handle": ack_handle}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Signer unreachable (%s): %s", ack_handle, exc)
            return False
        if not resp.is_success:
            logger.warning("Signer refused event (%s): HTTP %s", ack_handle, resp.status_code)
            return False
        return True


class CeleryHistoryRefresher:
    def reload(self, container: str, kind: int) -> None:
        from src.profiles.tasks import history_reload

        history_reload.delay(container, kind)


def get_sanitizer() -> Sanitizer:
    return import_string(settings.PROFILE_SANITIZER)


def get_alias_directory() -> AliasDirectory:
    return import_string(settings.PROFILE_ALIAS_DIRECTORY_CLASS)()


def get_signer() -> Signer:
    return import_string(settings.PROFILE_SIGNER_CLASS)()


def get_history_refresher() -> HistoryRefresher:
    return import_string(settings.PROFILE_HISTORY_REFRESHER_CLASS)()
