from ninja import Field, Schema

PROFILE_METADATA_KIND = 0


class ProfileEvent(Schema):
    """Unsigned kind-0 event; id and sig are added by the signer."""

    pubkey: str
    kind: int = PROFILE_METADATA_KIND
    created_at: int
    content: str
    tags: list[list[str]] = Field(default_factory=list)


##########################################################################


class IdentityIn(Schema):
    pubkey: str = Field(..., pattern=r"^[0-9a-f]{64}$")


class IdentityOut(Schema):
    pubkey: str | None = None


##########################################################################


class FormFieldOut(Schema):
    key: str
    label: str
    widget: str
    value: str
    html: str
    standard: bool


class FormStateOut(Schema):
    keys: list[str]
    fields: list[FormFieldOut]
    previews: dict[str, str]
    submit_label: str
    is_update: bool
    nip05_verification: dict | None = None


class AddFieldIn(Schema):
    name: str


class PreviewIn(Schema):
    key: str
    value: str = ""


class PreviewOut(Schema):
    key: str
    src: str


##########################################################################


class VerifyAliasIn(Schema):
    alias: str = ""


class VerifyAliasOut(Schema):
    alias: str
    result: str
    aria_invalid: str | None = None


class SubmitIn(Schema):
    values: dict[str, str]
    ack_handle: str = "metadatasubmitbutton"


class SubmitOut(Schema):
    published: bool


class CachedEventIn(Schema):
    """Signed kind-0 event as fetched from relays"""

    id: str | None = None
    pubkey: str
    kind: int
    created_at: int
    content: str
    tags: list[list[str]] = Field(default_factory=list)
    sig: str | None = None


class CachedEventOut(Schema):
    stored: bool
