"""Manifest data models."""

import json
from dataclasses import dataclass, field
from typing import Any

from .exceptions import DecodeError, InvalidIdentifier
from .utils.digest import Digest

OCI_IMAGE_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
DOCKER_MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"
OCI_IMAGE_CONFIG = "application/vnd.oci.image.config.v1+json"
OCI_IMAGE_LAYER_TAR_GZIP = "application/vnd.oci.image.layer.v1.tar+gzip"
OCTET_STREAM = "application/octet-stream"

# Accept header for manifest pulls, in order of preference
ACCEPTED_MANIFEST_TYPES = [OCI_IMAGE_MANIFEST, DOCKER_MANIFEST_V2]

_MANIFEST_FIELDS = {
    "schemaVersion",
    "mediaType",
    "artifactType",
    "config",
    "layers",
    "subject",
    "annotations",
}


@dataclass
class Descriptor:
    """Content descriptor pointing at a blob or manifest."""

    media_type: str
    digest: str
    size: int
    annotations: dict[str, str] | None = None
    urls: list[str] | None = None
    artifact_type: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "Descriptor":
        if not isinstance(data, dict):
            raise DecodeError(f"Descriptor must be an object, got {type(data).__name__}")
        try:
            media_type = data["mediaType"]
            digest = data["digest"]
            size = data["size"]
        except KeyError as e:
            raise DecodeError(f"Descriptor is missing field {e.args[0]!r}") from e

        if not isinstance(media_type, str) or not isinstance(digest, str):
            raise DecodeError("Descriptor mediaType and digest must be strings")
        if not isinstance(size, int) or isinstance(size, bool) or size < 0:
            raise DecodeError(f"Descriptor size must be a non-negative integer: {size!r}")

        return cls(
            media_type=media_type,
            digest=digest,
            size=size,
            annotations=data.get("annotations"),
            urls=data.get("urls"),
            artifact_type=data.get("artifactType"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "mediaType": self.media_type,
            "digest": self.digest,
            "size": self.size,
        }
        if self.urls is not None:
            data["urls"] = self.urls
        if self.annotations is not None:
            data["annotations"] = self.annotations
        if self.artifact_type is not None:
            data["artifactType"] = self.artifact_type
        return data

    @classmethod
    def for_blob(cls, data: bytes, media_type: str, **kwargs) -> "Descriptor":
        """Describe ``data`` by hashing it locally."""
        return cls(
            media_type=media_type,
            digest=str(Digest.from_bytes(data)),
            size=len(data),
            **kwargs,
        )


@dataclass
class ImageManifest:
    """OCI image manifest.

    The client only interprets ``layers`` (for their digests); every other
    field is carried through untouched, including unknown top-level keys
    which land in ``extra``.
    """

    config: Descriptor
    layers: list[Descriptor]
    schema_version: int = 2
    media_type: str | None = OCI_IMAGE_MANIFEST
    artifact_type: str | None = None
    subject: Descriptor | None = None
    annotations: dict[str, str] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "ImageManifest":
        if not isinstance(data, dict):
            raise DecodeError(f"Manifest must be an object, got {type(data).__name__}")

        schema_version = data.get("schemaVersion")
        if schema_version != 2:
            raise DecodeError(f"Unsupported manifest schemaVersion: {schema_version!r}")
        if "config" not in data:
            raise DecodeError("Manifest is missing field 'config'")

        layers = data.get("layers", [])
        if not isinstance(layers, list):
            raise DecodeError("Manifest layers must be a list")

        subject = data.get("subject")
        return cls(
            config=Descriptor.from_dict(data["config"]),
            layers=[Descriptor.from_dict(layer) for layer in layers],
            schema_version=schema_version,
            media_type=data.get("mediaType"),
            artifact_type=data.get("artifactType"),
            subject=Descriptor.from_dict(subject) if subject is not None else None,
            annotations=data.get("annotations"),
            extra={k: v for k, v in data.items() if k not in _MANIFEST_FIELDS},
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> "ImageManifest":
        """Parse the wire form of a manifest.

        Raises:
            DecodeError: If the text is not JSON or not a manifest
        """
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"Manifest is not valid JSON: {e}") from e
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"schemaVersion": self.schema_version}
        if self.media_type is not None:
            data["mediaType"] = self.media_type
        if self.artifact_type is not None:
            data["artifactType"] = self.artifact_type
        data["config"] = self.config.to_dict()
        data["layers"] = [layer.to_dict() for layer in self.layers]
        if self.subject is not None:
            data["subject"] = self.subject.to_dict()
        if self.annotations is not None:
            data["annotations"] = self.annotations
        data.update(self.extra)
        return data

    def to_json(self) -> bytes:
        """Serialize to the UTF-8 wire form."""
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")

    def layer_digests(self) -> list[Digest]:
        """Parse the digest of every layer, in manifest order.

        Raises:
            DecodeError: If a layer carries a malformed digest
        """
        digests = []
        for layer in self.layers:
            try:
                digests.append(Digest.parse(layer.digest))
            except InvalidIdentifier as e:
                raise DecodeError(f"Layer has invalid digest: {e}") from e
        return digests
