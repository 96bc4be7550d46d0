"""Exceptions raised by the knowledge base."""

from __future__ import annotations


class KbError(Exception):
    """Base class for every knowledge-base error."""


class NotInitializedError(KbError):
    """The working directory holds no .kb/ directory."""

    def __init__(self) -> None:
        super().__init__("No .kb/ directory found. Run `kb init` first.")


class DomainNotFoundError(KbError):
    """A domain is not listed in the configuration."""

    def __init__(self, domain: str, available: str) -> None:
        self.domain = domain
        self.available = available
        super().__init__(
            f'Domain "{domain}" not found in config. Available domains: {available}'
        )


class InvalidDomainNameError(KbError):
    """A domain name contains characters that are not allowed."""

    def __init__(self, domain: str) -> None:
        self.domain = domain
        super().__init__(
            f'Invalid domain name: "{domain}". Only alphanumeric characters, '
            "hyphens, and underscores are allowed."
        )


class DomainAlreadyExistsError(KbError):
    """A domain with this name is already configured."""

    def __init__(self, domain: str) -> None:
        self.domain = domain
        super().__init__(f'Domain "{domain}" already exists.')


class RecordNotFoundError(KbError):
    """No record (or session) matches the identifier."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(
            f'Record "{identifier}" not found. Run `kb query` to see record IDs.'
        )


class AmbiguousIdError(KbError):
    """An identifier prefix matches more than one record."""

    def __init__(self, identifier: str, count: int, ids: str) -> None:
        self.identifier = identifier
        self.count = count
        self.ids = ids
        super().__init__(
            f'Ambiguous identifier "{identifier}" matches {count} records: {ids}. '
            "Use more characters to disambiguate."
        )


class LockTimeoutError(KbError):
    """A file lock could not be acquired in time."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"Timed out waiting for lock on {path}. If no other kb process is "
            "running, delete the lock file manually."
        )


class ValidationError(KbError):
    """Data did not match the expected schema."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Schema validation failed: {message}")