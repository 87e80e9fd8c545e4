"""Exceptions for git mirror operations."""


class GitError(Exception):
    """Base error for git subprocess and mirror operations."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class GitLaunchError(GitError):
    """The git executable could not be started."""


class GitTimeoutError(GitError, TimeoutError):
    """A git command exceeded its wall-clock timeout and was killed."""

    def __init__(self, message: str, timeout: float):
        self.timeout = timeout
        super().__init__(message)


class GitCommandError(GitError):
    """A git command exited with a non-zero status.

    `stderr` is already sanitized; it never contains the access token.
    """

    def __init__(self, message: str, exit_code: int | None = None, stderr: str = ""):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(message)


class GitCloneError(GitCommandError):
    """Creating the bare mirror failed."""


class GitFetchError(GitCommandError):
    """Fetching refs into the mirror failed, including after the deep retry."""

    def __init__(self, message: str, refs: list[str], exit_code: int | None = None):
        self.refs = refs
        super().__init__(message, exit_code=exit_code)


class MergeBaseNotFoundError(GitError):
    """The two refs share no history (rewritten or unrelated branches).

    Distinct from GitCommandError: this is a real data condition, not a
    transient failure, so callers should not retry.
    """

    def __init__(self, ref1: str, ref2: str):
        self.ref1 = ref1
        self.ref2 = ref2
        super().__init__(f"No common ancestor between {ref1} and {ref2}")


class InvalidGitIdentifierError(GitError, ValueError):
    """An owner, repo or ref name was rejected before spawning git."""

    def __init__(self, kind: str, value: str):
        self.kind = kind
        self.value = value
        super().__init__(f"Invalid {kind}: {value!r}")
