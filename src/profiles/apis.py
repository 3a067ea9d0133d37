from asgiref.sync import sync_to_async
from django.conf import settings
from ninja_extra import ControllerBase, api_controller, route

from src.core.exceptions import DomainValidationError, IdentityRequiredError
from src.profiles import selectors, services
from src.profiles.collaborators import (
    get_alias_directory,
    get_history_refresher,
    get_sanitizer,
    get_signer,
)
from src.profiles.field_keys import merge_session_keys, resolve_keys
from src.profiles.forms import (
    AddCustomFieldForm,
    ProfileMetadataForm,
    build_form_state,
    form_state_reset,
    image_preview_update,
)
from src.profiles.presenters import form_state_to_dto, verification_to_dto
from src.profiles.schemas import (
    AddFieldIn,
    CachedEventIn,
    CachedEventOut,
    FormStateOut,
    IdentityIn,
    IdentityOut,
    PreviewIn,
    PreviewOut,
    SubmitIn,
    SubmitOut,
    VerifyAliasIn,
    VerifyAliasOut,
)
from src.profiles.verification import verify_alias


def _require_pubkey(request) -> str:
    pubkey = selectors.identity_pubkey_get(request.session)
    if not pubkey:
        raise IdentityRequiredError()
    return pubkey


@api_controller("/identity", tags=["Identity"], auth=None)
class IdentityController(ControllerBase):
    @route.get("/", response=IdentityOut)
    def current(self):
        request = self.context.request
        return {"pubkey": selectors.identity_pubkey_get(request.session)}

    @route.post("/", response=IdentityOut)
    def sign_in(self, payload: IdentityIn):
        """Remember the public key of the user operating this client"""
        request = self.context.request
        request.session[selectors.IDENTITY_SESSION_KEY] = payload.pubkey
        request.session.pop(selectors.CUSTOM_KEYS_SESSION_KEY, None)
        return {"pubkey": payload.pubkey}

    @route.delete("/", response=IdentityOut)
    def sign_out(self):
        self.context.request.session.flush()
        return {"pubkey": None}


@api_controller("/profile", tags=["Profile metadata"], auth=None)
class ProfileController(ControllerBase):
    @route.get("/form", response=FormStateOut)
    async def form(self):
        """
        Editable field list pre-filled from the cached profile.
        An alias already on the profile is verified right away.
        """
        request = self.context.request
        pubkey = _require_pubkey(request)
        cached = await sync_to_async(selectors.profile_cached_get)(pubkey=pubkey)
        state = build_form_state(
            cached,
            custom_keys=selectors.session_custom_keys_get(request.session),
            sanitizer=get_sanitizer(),
        )
        dto = form_state_to_dto(state)
        alias = cached.get("nip05") if cached else None
        if isinstance(alias, str) and alias:
            result = await verify_alias(alias, pubkey, directory=get_alias_directory())
            dto["nip05_verification"] = verification_to_dto(alias, result)
        return dto

    @route.post("/form/fields", response=FormStateOut)
    def add_field(self, payload: AddFieldIn):
        request = self.context.request
        pubkey = _require_pubkey(request)
        cached = selectors.profile_cached_get(pubkey=pubkey)
        session_keys = selectors.session_custom_keys_get(request.session)
        existing = merge_session_keys(resolve_keys(cached), session_keys)

        form = AddCustomFieldForm({"name": payload.name}, existing_keys=existing)
        if not form.is_valid():
            code = form.errors.as_data()["name"][0].code
            raise DomainValidationError(
                message="Custom field rejected",
                code=code,
                errors=form.errors.get_json_data(),
            )

        session_keys.append(form.cleaned_data["name"])
        request.session[selectors.CUSTOM_KEYS_SESSION_KEY] = session_keys
        state = build_form_state(cached, custom_keys=session_keys, sanitizer=get_sanitizer())
        return form_state_to_dto(state)

    @route.post("/form/reset", response=FormStateOut)
    def reset(self):
        request = self.context.request
        pubkey = _require_pubkey(request)
        request.session.pop(selectors.CUSTOM_KEYS_SESSION_KEY, None)
        cached = selectors.profile_cached_get(pubkey=pubkey)
        return form_state_to_dto(form_state_reset(cached, sanitizer=get_sanitizer()))

    @route.post("/form/preview", response=PreviewOut)
    def preview(self, payload: PreviewIn):
        src = image_preview_update(None, payload.key, payload.value, sanitizer=get_sanitizer())
        return {"key": payload.key, "src": src}

    @route.post("/verify-alias", response=VerifyAliasOut)
    async def verify(self, payload: VerifyAliasIn):
        pubkey = _require_pubkey(self.context.request)
        result = await verify_alias(payload.alias, pubkey, directory=get_alias_directory())
        return verification_to_dto(payload.alias, result)

    @route.post("/submit", response=SubmitOut)
    async def submit(self, payload: SubmitIn):
        request = self.context.request
        pubkey = _require_pubkey(request)
        # Re-read the cache: it may have moved since the form was rendered
        cached = await sync_to_async(selectors.profile_cached_get)(pubkey=pubkey)
        keys = merge_session_keys(
            merge_session_keys(resolve_keys(cached), selectors.session_custom_keys_get(request.session)),
            payload.values.keys(),
        )
        form = ProfileMetadataForm(payload.values, keys=keys)
        if not form.is_valid():
            raise DomainValidationError(message="Invalid profile values", errors=form.errors.get_json_data())

        published = await services.profile_submit(
            form_values=form.values(),
            cached=cached,
            pubkey=pubkey,
            ack_handle=payload.ack_handle,
            signer=get_signer(),
            history=get_history_refresher(),
            history_container=settings.PROFILE_HISTORY_CONTAINER,
        )
        return {"published": published}

    @route.put("/cached-event", response=CachedEventOut)
    def cache_event(self, payload: CachedEventIn):
        """Store the latest kind-0 event fetched from relays for the signed-in identity"""
        pubkey = _require_pubkey(self.context.request)
        stored = services.profile_event_cache_store(event=payload.model_dump(), pubkey=pubkey)
        return {"stored": stored}
