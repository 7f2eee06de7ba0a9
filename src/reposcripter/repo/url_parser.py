"""Parse and validate repository identifiers supplied by a consumer."""

from __future__ import annotations

import re


class TargetValidationError(ValueError):
    """Raised when a target identifier is missing or malformed.

    Detected before any generation call; never retried.
    """

    pass


# Strict form accepted by the web form: https://github.com/user/repo
GITHUB_PATTERN = re.compile(r"^(https|http)://github\.com/[\w-]+/[\w.-]+$")

MISSING_URL_MESSAGE = "Please enter a GitHub repository URL."
INVALID_URL_MESSAGE = (
    "Invalid GitHub repository URL. Format should be: https://github.com/user/repo"
)


def validate_github_url(url: str | None) -> str:
    """Validate a GitHub repository URL the way the web form does.

    Returns:
        The stripped URL.

    Raises:
        TargetValidationError: With a message suitable for display.
    """
    url = (url or "").strip()
    if not url:
        raise TargetValidationError(MISSING_URL_MESSAGE)
    if not GITHUB_PATTERN.match(url):
        raise TargetValidationError(INVALID_URL_MESSAGE)
    return url
