"""VCS error types.

Messages never carry credentials: command lines and process output are
passed through ``redact`` before they are stored on the exception.
"""

from repograph.vcs.credentials import redact


class GitError(Exception):
    """Base error for VCS operations."""

    pass


class GitCommandError(GitError):
    """git subprocess exited non-zero."""

    def __init__(self, args: list[str], returncode: int, output: str) -> None:
        self.command = redact(" ".join(["git", *args]))
        self.returncode = returncode
        self.output = redact(output.strip())
        super().__init__(f"{self.command} failed (exit {returncode}): {self.output}")


class GitTimeoutError(GitError):
    """git subprocess exceeded its wall-clock budget and was killed."""

    def __init__(self, args: list[str], timeout: float) -> None:
        self.command = redact(" ".join(["git", *args]))
        self.timeout = timeout
        super().__init__(f"{self.command} timed out after {timeout:g}s")


class ProviderApiError(GitError):
    """Hosting service API returned an error or an unexpected payload."""

    def __init__(self, provider: str, url: str, status_code: int | None, message: str) -> None:
        self.provider = provider
        self.url = redact(url)
        self.status_code = status_code
        status = f"HTTP {status_code}" if status_code is not None else "request failed"
        super().__init__(f"{provider} API {status} for {self.url}: {redact(message)}")


class InvalidRepoUrlError(GitError):
    """URL cannot be split into owner and repository name."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid repository URL: {redact(url)}")
        self.url = redact(url)


class UnsupportedProviderError(GitError):
    """No provider registered for the requested kind."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Unsupported provider: {kind}")
        self.kind = kind
