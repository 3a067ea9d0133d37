from config.env import env

# Signing / relay-broadcast service receiving unsigned kind-0 events
PROFILE_SIGNER_URL = env.str("PROFILE_SIGNER_URL", default="http://127.0.0.1:7447/events")
PROFILE_SIGNER_TIMEOUT = env.float("PROFILE_SIGNER_TIMEOUT", default=30.0)

# NIP-05 directory lookups (https://<domain>/.well-known/nostr.json)
PROFILE_NIP05_TIMEOUT = env.float("PROFILE_NIP05_TIMEOUT", default=5.0)

# History list refreshed after a successful publish
PROFILE_HISTORY_CONTAINER = env.str("PROFILE_HISTORY_CONTAINER", default="metadatahistory")

# Collaborator adapters (dotted paths, resolved with import_string)
PROFILE_SIGNER_CLASS = env.str(
    "PROFILE_SIGNER_CLASS", default="src.profiles.collaborators.RemoteSigner"
)
PROFILE_ALIAS_DIRECTORY_CLASS = env.str(
    "PROFILE_ALIAS_DIRECTORY_CLASS", default="src.profiles.collaborators.Nip05Directory"
)
PROFILE_HISTORY_REFRESHER_CLASS = env.str(
    "PROFILE_HISTORY_REFRESHER_CLASS",
    default="src.profiles.collaborators.CeleryHistoryRefresher",
)
PROFILE_SANITIZER = env.str(
    "PROFILE_SANITIZER", default="src.profiles.collaborators.html_sanitize"
)
