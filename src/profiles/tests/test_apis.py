import json

import pytest
from django.test import Client

from src.profiles.tests.fakes import PUBKEY, FakeDirectory, FakeHistory, FakeSigner


def post(client, url, payload=None):
    return client.post(url, data=json.dumps(payload or {}), content_type="application/json")


@pytest.fixture
def client(fake_collaborators):
    c = Client()
    resp = post(c, "/api/identity/", {"pubkey": PUBKEY})
    assert resp.status_code == 200
    return c


def cache_profile(client, content, created_at=100):
    resp = client.put(
        "/api/profile/cached-event",
        data=json.dumps({"pubkey": PUBKEY, "kind": 0, "created_at": created_at, "content": json.dumps(content)}),
        content_type="application/json",
    )
    assert resp.status_code == 200
    return resp.json()


def test_profile_endpoints_require_identity(fake_collaborators):
    resp = Client().get("/api/profile/form")
    assert resp.status_code == 401
    assert resp.json()["code"] == "IDENTITY_REQUIRED"


def test_identity_rejects_malformed_pubkey(fake_collaborators):
    resp = post(Client(), "/api/identity/", {"pubkey": "npub-not-hex"})
    assert resp.status_code == 422
    assert resp.json()["code"] == "VALIDATION_ERROR"


def test_identity_round_trip(client):
    assert client.get("/api/identity/").json() == {"pubkey": PUBKEY}
    assert client.delete("/api/identity/").json() == {"pubkey": None}
    assert client.get("/api/identity/").json() == {"pubkey": None}


def test_first_profile_form_and_submit(client):
    form = client.get("/api/profile/form").json()
    assert form["submit_label"] == "Save"
    assert form["nip05_verification"] is None

    added = post(client, "/api/profile/form/fields", {"name": "location"}).json()
    assert added["keys"][-1] == "location"

    resp = post(client, "/api/profile/submit", {"values": {"name": "Alice", "location": "NYC"}})
    assert resp.json() == {"published": True}
    event = FakeSigner.submitted[-1].event
    assert json.loads(event.content) == {"name": "Alice", "location": "NYC"}
    assert event.kind == 0 and event.tags == []
    assert FakeHistory.reloads == [("metadatahistory", 0)]


def test_unpublished_submission_skips_history(client):
    FakeSigner.result = False
    resp = post(client, "/api/profile/submit", {"values": {"name": "Alice"}})
    assert resp.json() == {"published": False}
    assert FakeHistory.reloads == []


def test_cached_profile_prefills_and_verifies_alias(client):
    FakeDirectory.bindings = {"alice@example.com": PUBKEY}
    assert cache_profile(client, {"about": "<b>hi</b>", "name": "Alice", "nip05": "alice@example.com"}) == {"stored": True}

    form = client.get("/api/profile/form").json()
    assert form["submit_label"] == "Update"
    assert form["keys"][:3] == ["about", "name", "nip05"]
    fields = {f["key"]: f for f in form["fields"]}
    assert fields["about"]["value"] == "<b>hi</b>"
    assert fields["about"]["html"] == "&lt;b&gt;hi&lt;/b&gt;"
    assert form["nip05_verification"] == {"alias": "alice@example.com", "result": "valid", "aria_invalid": "false"}


def test_add_field_rejections_carry_reason_codes(client):
    for name, code in [("my field", "invalid-characters"), ("name", "reserved"), ("  ", "empty")]:
        resp = post(client, "/api/profile/form/fields", {"name": name})
        assert resp.status_code == 422
        assert resp.json()["code"] == code

    assert post(client, "/api/profile/form/fields", {"name": "x"}).status_code == 200
    resp = post(client, "/api/profile/form/fields", {"name": "x"})
    assert resp.json()["code"] == "duplicate"


def test_reset_drops_session_custom_fields(client):
    post(client, "/api/profile/form/fields", {"name": "location"})
    assert "location" in client.get("/api/profile/form").json()["keys"]
    reset = post(client, "/api/profile/form/reset").json()
    assert "location" not in reset["keys"]
    assert "location" not in client.get("/api/profile/form").json()["keys"]


def test_verify_alias_tri_state(client):
    FakeDirectory.bindings = {"alice@example.com": PUBKEY, "bob@example.com": "f" * 64}
    assert post(client, "/api/profile/verify-alias", {"alias": ""}).json()["result"] == "unset"
    assert post(client, "/api/profile/verify-alias", {"alias": "alice@example.com"}).json()["result"] == "valid"
    bob = post(client, "/api/profile/verify-alias", {"alias": "bob@example.com"}).json()
    assert bob == {"alias": "bob@example.com", "result": "invalid", "aria_invalid": "true"}


def test_image_preview(client):
    assert post(client, "/api/profile/form/preview", {"key": "picture", "value": "https://p/a.png"}).json() == {
        "key": "picture",
        "src": "https://p/a.png",
    }
    resp = post(client, "/api/profile/form/preview", {"key": "about", "value": "x"})
    assert resp.status_code == 422
    assert resp.json()["code"] == "PREVIEW_NOT_SUPPORTED"


def test_unchanged_form_resubmits_the_same_text(client):
    published = {"name": "Tom & Jerry", "about": "I <3 nostr", "lud16": "tom@wallet"}
    cache_profile(client, published)
    form = client.get("/api/profile/form").json()
    values = {f["key"]: f["value"] for f in form["fields"]}

    for _ in range(2):
        assert post(client, "/api/profile/submit", {"values": values}).json() == {"published": True}
    first, second = FakeSigner.submitted
    assert json.loads(first.event.content) == published
    assert second.event.content == first.event.content


def test_submit_accepts_any_string_value(client):
    resp = post(client, "/api/profile/submit", {"values": {"name": "a\x00b", "note": "‮<>&"}})
    assert resp.json() == {"published": True}
    assert json.loads(FakeSigner.submitted[-1].event.content) == {"name": "a\x00b", "note": "‮<>&"}
