"""Constants for git mirror operations."""

import re

# Replaces the access token in every surfaced error message
TOKEN_PLACEHOLDER = "***TOKEN***"

GITHUB_CLONE_HOST = "github.com"

# Markers in git's stderr that indicate the fetch depth was too shallow
SHALLOW_ERROR_MARKERS = ("shallow", "unshallow")

# GitHub owner and repository names: no leading dot/dash, no path separators
NAME_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")

# Commit SHAs and branch/tag names accepted as fetch targets
REF_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_./-]*$")
MAX_REF_LENGTH = 255

# `git diff --name-status` letters
FILE_STATUS_NAMES = {
    "A": "added",
    "D": "removed",
    "R": "renamed",
    "C": "copied",
}
