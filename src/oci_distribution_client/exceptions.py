"""Custom exceptions for the OCI distribution client."""

from dataclasses import dataclass


class DistributionError(Exception):
    """Base exception for all distribution client errors."""

    def __init__(self, message: str, *, context: str | None = None) -> None:
        super().__init__(message)
        self.context = context

    def with_context(self, context: str) -> "DistributionError":
        """Attach a description of the failing step and return self."""
        self.context = context
        return self

    def __str__(self) -> str:
        text = super().__str__()
        if self.context:
            return f"{self.context}: {text}"
        return text


class InvalidIdentifier(DistributionError, ValueError):
    """Raised when a repository name, reference or digest is malformed.

    Attributes:
        kind: Which grammar rejected the value ("name", "reference", "digest")
        value: The rejected input
        reason: Human readable description of the violated rule
    """

    def __init__(self, kind: str, value: object, reason: str) -> None:
        super().__init__(f"Invalid {kind} {value!r}: {reason}")
        self.kind = kind
        self.value = value
        self.reason = reason


class TransportError(DistributionError):
    """Raised when the HTTP exchange itself fails (connection, timeout, TLS, DNS)."""

    pass


class DecodeError(DistributionError):
    """Raised when a response body does not have the expected shape."""

    def __init__(
        self, message: str, status: int | None = None, *, context: str | None = None
    ) -> None:
        super().__init__(message, context=context)
        self.status = status


class MissingLocation(DistributionError):
    """Raised when a successful response lacks a usable Location header."""

    def __init__(
        self, message: str, status: int | None = None, *, context: str | None = None
    ) -> None:
        super().__init__(message, context=context)
        self.status = status


@dataclass(frozen=True)
class ErrorDetail:
    """Single entry of a registry error document."""

    code: str
    message: str
    detail: object = None


class RegistryError(DistributionError):
    """Raised when the registry answers with a well-formed error document.

    Attributes:
        status: HTTP status code of the response
        errors: All entries of the ``errors`` array, in registry order
    """

    def __init__(
        self, status: int, errors: list[ErrorDetail], *, context: str | None = None
    ) -> None:
        self.status = status
        self.errors = errors
        summary = "; ".join(f"{e.code}: {e.message}" for e in errors)
        super().__init__(
            f"Registry returned {status} ({summary or 'no error entries'})",
            context=context,
        )

    @property
    def code(self) -> str | None:
        return self.errors[0].code if self.errors else None

    @property
    def detail(self) -> object:
        return self.errors[0].detail if self.errors else None

    @property
    def message(self) -> str | None:
        return self.errors[0].message if self.errors else None


class DigestMismatchError(DistributionError):
    """Raised when content does not hash to the digest it is addressed by."""

    def __init__(
        self, expected: str, actual: str, *, context: str | None = None
    ) -> None:
        super().__init__(
            f"Digest mismatch: expected {expected}, got {actual}", context=context
        )
        self.expected = expected
        self.actual = actual
