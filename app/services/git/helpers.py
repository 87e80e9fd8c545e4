"""
Git helper utilities.

Provides token sanitization and identifier validation shared by the
process runner, the mirror and the range operations.
"""

from app.services.git.constants import (
    MAX_REF_LENGTH,
    NAME_PATTERN,
    REF_PATTERN,
    SHALLOW_ERROR_MARKERS,
    TOKEN_PLACEHOLDER,
)
from app.services.git.exceptions import InvalidGitIdentifierError


def sanitize_error(message: str, token: str | None) -> str:
    """
    Remove every occurrence of an access token from a message.

    Plain substring replacement, so tokens containing regex metacharacters
    are handled literally.

    Args:
        message: Error text, typically git stderr or an exception message
        token: The secret to scrub; empty or None leaves the message unchanged

    Returns:
        The message with each token occurrence replaced by a placeholder
    """
    if not token:
        return message
    return message.replace(token, TOKEN_PLACEHOLDER)


def is_shallow_error(message: str) -> bool:
    """Check if a git failure was caused by a too-shallow history."""
    lowered = message.lower()
    return any(marker in lowered for marker in SHALLOW_ERROR_MARKERS)


def validate_name(kind: str, value: str) -> str:
    """Validate a GitHub owner or repository name."""
    if not value or not NAME_PATTERN.match(value) or value.endswith(".git"):
        raise InvalidGitIdentifierError(kind, value)
    return value


def validate_ref(value: str) -> str:
    """
    Validate a commit SHA or ref name before it reaches the git command line.

    Rejects leading dashes (option injection), `..` (range syntax) and
    anything outside the ref character set.
    """
    if (
        not value
        or len(value) > MAX_REF_LENGTH
        or not REF_PATTERN.match(value)
        or ".." in value
        or value.endswith("/")
        or value.endswith(".lock")
    ):
        raise InvalidGitIdentifierError("ref", value)
    return value
