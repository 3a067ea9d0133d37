from dataclasses import dataclass, field
from typing import Iterable, Mapping

from django import forms

from src.core.exceptions import DomainValidationError
from src.profiles.collaborators import Sanitizer, html_sanitize
from src.profiles.field_keys import (
    IMAGE_KEYS,
    STANDARD_KEYS,
    admit_custom_key,
    merge_session_keys,
    resolve_keys,
)

TEXTAREA_KEYS = ("about",)

FIELD_LABELS = {
    "lud06": "lud06 (LNURL)",
}


@dataclass
class FormField:
    key: str
    label: str
    widget: str
    value: str
    html: str
    standard: bool


@dataclass
class FormState:
    keys: list[str]
    fields: list[FormField]
    previews: dict[str, str] = field(default_factory=dict)
    submit_label: str = "Save"
    is_update: bool = False


def _prefill(cached: Mapping[str, object] | None, key: str) -> str:
    if not cached:
        return ""
    value = cached.get(key)
    return value if isinstance(value, str) and value else ""


def build_form_state(
    cached: Mapping[str, object] | None,
    *,
    custom_keys: Iterable[str] = (),
    sanitizer: Sanitizer = html_sanitize,
) -> FormState:
    """
    Editable field list for the profile form.
    `cached` is the content of the last published profile, None on first creation.
    `value` is the raw pre-fill for input binding; `html` and the previews
    went through `sanitizer` and are the only strings meant for markup.
    """
    keys = merge_session_keys(resolve_keys(cached), custom_keys)
    fields = [
        FormField(
            key=k,
            label=FIELD_LABELS.get(k, k),
            widget="textarea" if k in TEXTAREA_KEYS else "text",
            value=_prefill(cached, k),
            html=sanitizer(_prefill(cached, k)),
            standard=k in STANDARD_KEYS,
        )
        for k in keys
    ]
    previews = {k: sanitizer(_prefill(cached, k)) for k in IMAGE_KEYS}
    is_update = cached is not None
    return FormState(
        keys=keys,
        fields=fields,
        previews=previews,
        submit_label="Update" if is_update else "Save",
        is_update=is_update,
    )


def form_state_reset(cached: Mapping[str, object] | None, *, sanitizer: Sanitizer = html_sanitize) -> FormState:
    # Session edits and added custom keys are dropped
    return build_form_state(cached, sanitizer=sanitizer)


def image_preview_update(state: FormState | None, key: str, value: str, *, sanitizer: Sanitizer = html_sanitize) -> str:
    if key not in IMAGE_KEYS:
        raise DomainValidationError(
            message=f"No preview for field {key!r}",
            code="PREVIEW_NOT_SUPPORTED",
            errors={"key": [f"expected one of {', '.join(IMAGE_KEYS)}"]},
        )
    src = sanitizer(value or "")
    if state is not None:
        state.previews[key] = src
    return src


class AddCustomFieldForm(forms.Form):
    name = forms.CharField(label="Add custom field", required=False, strip=False)

    def __init__(self, *args, existing_keys: Iterable[str] = (), **kwargs):
        super().__init__(*args, **kwargs)
        self.existing_keys = list(existing_keys)

    def clean_name(self):
        admission = admit_custom_key(self.cleaned_data.get("name") or "", self.existing_keys)
        if not admission.accepted:
            raise forms.ValidationError(
                f"Custom field rejected: {admission.reason}", code=admission.reason
            )
        return admission.key


class ProfileMetadataForm(forms.Form):
    """
    Binds submitted profile values.
    One optional CharField per key; values are kept verbatim.
    """

    def __init__(self, *args, keys: Iterable[str] = (), **kwargs):
        super().__init__(*args, **kwargs)
        for k in keys:
            widget = forms.Textarea if k in TEXTAREA_KEYS else forms.TextInput
            self.fields[k] = forms.CharField(
                label=FIELD_LABELS.get(k, k), required=False, strip=False, widget=widget
            )
            # Any string is a legal value, NUL characters included
            self.fields[k].validators = []

    def values(self) -> dict[str, str]:
        return {k: v for k, v in self.cleaned_data.items() if isinstance(v, str)}
