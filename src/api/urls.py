from ninja_extra import NinjaExtraAPI

from src.api.exception_handler import attach_exception_handlers
from src.profiles.apis import IdentityController, ProfileController


api = NinjaExtraAPI(title="Profile Metadata API", version="1.0.0", urls_namespace="profile-api")

# Register exception handlers in one place
attach_exception_handlers(api)

api.register_controllers(
    IdentityController,
    ProfileController,
)
