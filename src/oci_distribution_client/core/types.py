"""Core value types shared by the distribution client."""

import os
from dataclasses import dataclass, field

from yarl import URL

from .. import __version__
from ..exceptions import InvalidIdentifier
from ..utils.digest import Digest
from ..utils.validator import is_digest_like, repository_name_violation, tag_violation

DEFAULT_TIMEOUT = 30
DEFAULT_USER_AGENT = f"oci-distribution-client/{__version__}"


@dataclass(frozen=True)
class RegistryConfig:
    """Registry connection settings.

    Args:
        url: Registry URL (e.g., http://localhost:5000)
        timeout: Total request timeout in seconds
        user_agent: Value of the User-Agent header
    """

    url: str
    timeout: int = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def base_url(self) -> str:
        """Registry URL without trailing slash."""
        return self.url.rstrip("/")

    @classmethod
    def from_env(cls, **overrides) -> "RegistryConfig":
        """Build a config from ``OCI_REGISTRY_URL`` and ``OCI_REGISTRY_TIMEOUT``.

        Keyword arguments take precedence over the environment.
        """
        values: dict = {}
        url = os.getenv("OCI_REGISTRY_URL")
        if url:
            values["url"] = url
        timeout = os.getenv("OCI_REGISTRY_TIMEOUT")
        if timeout:
            values["timeout"] = int(timeout)
        values.update(overrides)
        if "url" not in values:
            raise ValueError("OCI_REGISTRY_URL is not set and no url was given")
        return cls(**values)


@dataclass(frozen=True)
class RepositoryName:
    """Validated repository name such as ``library/ubuntu``."""

    value: str

    def __post_init__(self) -> None:
        reason = repository_name_violation(self.value)
        if reason is not None:
            raise InvalidIdentifier("name", self.value, reason)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Reference:
    """Validated manifest reference, either a tag or a digest."""

    value: str
    digest: Digest | None = field(init=False, default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise InvalidIdentifier("reference", self.value, "must be a string")
        if is_digest_like(self.value):
            object.__setattr__(self, "digest", Digest.parse(self.value))
            return
        reason = tag_violation(self.value)
        if reason is not None:
            raise InvalidIdentifier("reference", self.value, reason)

    @property
    def is_digest(self) -> bool:
        return self.digest is not None

    @property
    def is_tag(self) -> bool:
        return self.digest is None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class UploadSession:
    """Upload URL handed out by the registry when a blob upload starts.

    Valid for exactly one completion request.
    """

    location: URL

    def completion_url(self, digest: Digest) -> URL:
        """URL for the monolithic PUT that closes the session."""
        return self.location.update_query(digest=str(digest))
