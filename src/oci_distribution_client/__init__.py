"""OCI Distribution Client - Async Python client for the OCI distribution API."""

__version__ = "0.1.0"

from .core.registry_client import RegistryClient
from .core.types import Reference, RegistryConfig, RepositoryName, UploadSession
from .exceptions import (
    DecodeError,
    DigestMismatchError,
    DistributionError,
    ErrorDetail,
    InvalidIdentifier,
    MissingLocation,
    RegistryError,
    TransportError,
)
from .models import Descriptor, ImageManifest
from .utils.digest import Digest, calculate_digest, validate_digest, verify_digest

__all__ = [
    "RegistryClient",
    "RegistryConfig",
    "RepositoryName",
    "Reference",
    "UploadSession",
    "Digest",
    "Descriptor",
    "ImageManifest",
    "calculate_digest",
    "validate_digest",
    "verify_digest",
    "DistributionError",
    "InvalidIdentifier",
    "TransportError",
    "DecodeError",
    "MissingLocation",
    "RegistryError",
    "ErrorDetail",
    "DigestMismatchError",
]
