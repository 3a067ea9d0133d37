import logging
from enum import Enum

from src.profiles.collaborators import AliasDirectory

logger = logging.getLogger(__name__)


class VerificationResult(str, Enum):
    UNSET = "unset"
    VALID = "valid"
    INVALID = "invalid"


async def verify_alias(alias: str, signed_in_pubkey: str, *, directory: AliasDirectory) -> VerificationResult:
    """
    Check a NIP-05 alias against the signed-in key.

    Calls are independent: nothing is cancelled or sequenced, whichever
    response the caller applies last wins.
    """
    if not alias:
        return VerificationResult.UNSET

    try:
        resolved = await directory.resolve(alias)
    except Exception as exc:
        # Keep directory errors opaque to caller; treat as not verified
        logger.info("NIP-05 lookup failed for %s: %s", alias, exc)
        return VerificationResult.INVALID

    if resolved and resolved == signed_in_pubkey:
        return VerificationResult.VALID
    logger.info("NIP-05 %s resolves to a different key", alias)
    return VerificationResult.INVALID


def aria_invalid_for(result: VerificationResult) -> str | None:
    # unset -> attribute removed
    if result == VerificationResult.UNSET:
        return None
    return "false" if result == VerificationResult.VALID else "true"
