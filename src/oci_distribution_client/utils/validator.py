"""Identifier grammar checks for repository names and tags."""

import re

# Path component: lowercase alphanumerics joined by ".", "_", "__" or runs of "-"
_COMPONENT = r"[a-z0-9]+(?:(?:\.|_|__|-+)[a-z0-9]+)*"
NAME_PATTERN = re.compile(rf"^{_COMPONENT}(?:/{_COMPONENT})*$")
TAG_PATTERN = re.compile(r"^[a-zA-Z0-9_][a-zA-Z0-9._-]{0,127}$")

NAME_MAX_LENGTH = 255
TAG_MAX_LENGTH = 128


def has_empty_component(name: str) -> bool:
    """Check if a slash separated name has an empty path component."""
    return any(component == "" for component in name.split("/"))


def has_edge_separator(value: str) -> bool:
    """Check if value starts or ends with a separator character."""
    separators = "/._-"
    return value[0] in separators or value[-1] in separators


def repository_name_violation(name: object) -> str | None:
    """Describe why ``name`` is not a valid repository name.

    Returns:
        None if the name is valid, otherwise the violated rule
    """
    if not isinstance(name, str) or not name:
        return "must be a non-empty string"

    if len(name) > NAME_MAX_LENGTH:
        return f"must not be more than {NAME_MAX_LENGTH} characters"
    if name != name.lower():
        return "must be lowercase"
    if has_edge_separator(name):
        return "must not start or end with a separator"
    if has_empty_component(name):
        return "path components must be non-empty"
    if not NAME_PATTERN.match(name):
        return "contains characters or separators outside the name grammar"
    return None


def tag_violation(tag: object) -> str | None:
    """Describe why ``tag`` is not a valid tag, or return None."""
    if not isinstance(tag, str) or not tag:
        return "must be a non-empty string"

    if len(tag) > TAG_MAX_LENGTH:
        return f"must not be more than {TAG_MAX_LENGTH} characters"
    if tag[0] in ".-":
        return "must not start with a separator"
    if not TAG_PATTERN.match(tag):
        return "contains characters outside [a-zA-Z0-9._-]"
    return None


def is_valid_repository_name(name: object) -> bool:
    """Check if name matches the repository name grammar."""
    return repository_name_violation(name) is None


def is_valid_tag(tag: object) -> bool:
    """Check if tag matches the tag grammar."""
    return tag_violation(tag) is None


def is_digest_like(reference: str) -> bool:
    """Check if a reference should be parsed as a digest instead of a tag.

    Tags never contain ':', so any colon marks the reference as a digest.
    """
    return ":" in reference
