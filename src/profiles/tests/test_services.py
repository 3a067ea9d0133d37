import asyncio
import json
import time
from datetime import datetime, timezone

import pytest

from src.core.exceptions import DomainValidationError
from src.profiles import services
from src.profiles.selectors import profile_cached_event_get, profile_cached_get
from src.profiles.tests.fakes import OTHER_PUBKEY, PUBKEY, FakeHistory, FakeSigner


def submit(form_values, cached=None, signer=None):
    return asyncio.run(
        services.profile_submit(
            form_values=form_values,
            cached=cached,
            pubkey=PUBKEY,
            ack_handle="metadatasubmitbutton",
            signer=signer or FakeSigner(),
            history=FakeHistory(),
            history_container="metadatahistory",
        )
    )


def last_content():
    return json.loads(FakeSigner.submitted[-1].event.content)


def test_new_profile_with_custom_field_end_to_end():
    before = int(time.time())
    assert submit({"name": "Alice", "nip05": "", "location": "NYC"}) is True

    sent = FakeSigner.submitted[-1]
    assert sent.ack_handle == "metadatasubmitbutton"
    assert sent.event.kind == 0
    assert sent.event.tags == []
    assert sent.event.pubkey == PUBKEY
    assert before <= sent.event.created_at <= int(time.time())
    assert sent.event.content == '{"name":"Alice","location":"NYC"}'
    assert FakeHistory.reloads == [("metadatahistory", 0)]


def test_failed_broadcast_does_not_refresh_history():
    assert submit({"name": "Alice"}, signer=FakeSigner(result=False)) is False
    assert len(FakeSigner.submitted) == 1
    assert FakeHistory.reloads == []


def test_signer_exception_is_contained():
    assert submit({"name": "Alice"}, signer=FakeSigner(result=RuntimeError("relay down"))) is False
    assert FakeHistory.reloads == []


def test_clearing_a_field_removes_it_from_the_profile():
    submit({"name": "Alice", "about": "hi", "website": "https://a"})
    published = last_content()
    assert published == {"name": "Alice", "about": "hi", "website": "https://a"}

    submit({"name": "Alice", "about": "", "website": "https://a"}, cached=published)
    assert "about" not in last_content()
    assert last_content() == {"name": "Alice", "website": "https://a"}


def test_content_follows_cached_key_order():
    cached = {"website": "https://a", "about": "old", "name": "Alice"}
    content = services.profile_content_build(
        {"name": "Alice", "about": "new", "website": "https://a", "lud16": "a@w"}, cached
    )
    assert list(content) == ["website", "about", "name", "lud16"]


def test_form_keys_missing_from_base_order_are_kept():
    content = services.profile_content_build({"name": "Alice", "pronouns": "she/her"}, {"name": "Alice"})
    assert content == {"name": "Alice", "pronouns": "she/her"}


def test_resubmitting_unchanged_values_gives_equal_content():
    values = {"name": "Alice", "about": "hi", "location": "NYC"}
    cached = {"name": "Alice", "about": "hi"}
    submit(values, cached=cached)
    submit(values, cached=cached)
    first, second = FakeSigner.submitted
    assert json.loads(first.event.content) == json.loads(second.event.content)
    assert first.event.content == second.event.content


def test_profile_event_build_uses_unix_seconds():
    now = datetime(2024, 1, 2, 3, 4, 5, 999000, tzinfo=timezone.utc)
    event = services.profile_event_build({"name": "Ünïcode"}, pubkey=PUBKEY, now=now)
    assert event.created_at == int(now.timestamp())
    assert event.content == '{"name":"Ünïcode"}'
    services.validate_profile_event(event.model_dump())


def _event(created_at, content='{"name":"Alice"}', **kw):
    event = {"pubkey": PUBKEY, "kind": 0, "created_at": created_at, "content": content, "tags": [], "id": "e", "sig": "s"}
    event.update(kw)
    return event


def test_cache_store_keeps_only_newer_events():
    assert services.profile_event_cache_store(event=_event(10), pubkey=PUBKEY) is True
    assert services.profile_event_cache_store(event=_event(5, '{"name":"Old"}'), pubkey=PUBKEY) is False
    assert profile_cached_get(pubkey=PUBKEY) == {"name": "Alice"}
    assert services.profile_event_cache_store(event=_event(11, '{"about":"x","name":"New"}'), pubkey=PUBKEY) is True
    assert list(profile_cached_get(pubkey=PUBKEY)) == ["about", "name"]
    assert profile_cached_event_get(pubkey=PUBKEY)["created_at"] == 11


def test_cache_store_rejects_foreign_or_malformed_events():
    with pytest.raises(DomainValidationError) as exc:
        services.profile_event_cache_store(event=_event(1, kind=1), pubkey=PUBKEY)
    assert exc.value.code == "UNSUPPORTED_KIND"
    with pytest.raises(DomainValidationError) as exc:
        services.profile_event_cache_store(event=_event(1, pubkey=OTHER_PUBKEY), pubkey=PUBKEY)
    assert exc.value.code == "PUBKEY_MISMATCH"
    with pytest.raises(DomainValidationError) as exc:
        services.profile_event_cache_store(event=_event("1"), pubkey=PUBKEY)
    assert exc.value.code == "MALFORMED_EVENT"


class BrokenHistory:
    def reload(self, container, kind):
        raise ConnectionError("broker unreachable")


def test_history_refresh_error_after_publish_still_reports_success():
    result = asyncio.run(
        services.profile_submit(
            form_values={"name": "Alice"},
            cached=None,
            pubkey=PUBKEY,
            ack_handle="metadatasubmitbutton",
            signer=FakeSigner(),
            history=BrokenHistory(),
            history_container="metadatahistory",
        )
    )
    assert result is True
    assert len(FakeSigner.submitted) == 1
