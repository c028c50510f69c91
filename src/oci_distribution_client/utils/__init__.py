"""Utility functions for the OCI distribution client."""

from .digest import Digest, calculate_digest, validate_digest, verify_digest
from .validator import is_valid_repository_name, is_valid_tag

__all__ = [
    "Digest",
    "calculate_digest",
    "validate_digest",
    "verify_digest",
    "is_valid_repository_name",
    "is_valid_tag",
]
