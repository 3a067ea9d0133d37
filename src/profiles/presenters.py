from src.profiles.forms import FormState
from src.profiles.verification import VerificationResult, aria_invalid_for


def form_state_to_dto(state: FormState) -> dict:
    return {
        "keys": list(state.keys),
        "fields": [
            {
                "key": f.key,
                "label": f.label,
                "widget": f.widget,
                "value": f.value,
                "html": f.html,
                "standard": f.standard,
            }
            for f in state.fields
        ],
        "previews": dict(state.previews),
        "submit_label": state.submit_label,
        "is_update": state.is_update,
    }


def verification_to_dto(alias: str, result: VerificationResult) -> dict:
    return {
        "alias": alias,
        "result": result.value,
        "aria_invalid": aria_invalid_for(result),
    }
