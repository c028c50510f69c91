"""OCI distribution API async client implementation."""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Union

import aiohttp
from yarl import URL

from ..exceptions import (
    DecodeError,
    DigestMismatchError,
    DistributionError,
    RegistryError,
    TransportError,
)
from ..models import ACCEPTED_MANIFEST_TYPES, OCI_IMAGE_MANIFEST, OCTET_STREAM, ImageManifest
from ..utils.digest import Digest
from .response import (
    is_success,
    location_from_response,
    raise_for_registry_error,
)
from .session import create_session
from .types import DEFAULT_TIMEOUT, Reference, RegistryConfig, RepositoryName, UploadSession

logger = logging.getLogger(__name__)

DIGEST_HEADER = "Docker-Content-Digest"


class RegistryClient:
    """Client for the ``/v2/<name>/`` endpoints of an OCI distribution registry.

    The repository name is validated when the client is built, so every
    request path is assembled from already validated values only.

    Transport failures and timeouts surface as TransportError, but
    asyncio.CancelledError propagates unchanged so task cancellation works.

    Example:
        async with RegistryClient("http://localhost:5000", "library/app") as client:
            tags = await client.list_tags()
    """

    def __init__(
        self,
        registry_url: Union[str, RegistryConfig],
        name: str,
        timeout: int = DEFAULT_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
        connector: aiohttp.BaseConnector | None = None,
    ) -> None:
        """Initialize the registry client.

        Args:
            registry_url: Registry URL (e.g., http://localhost:5000) or a config
            name: Repository name (e.g., library/ubuntu)
            timeout: Request timeout in seconds, ignored when a config is given
            session: Shared aiohttp session; the client never closes it
            connector: aiohttp connector for connection pooling

        Raises:
            InvalidIdentifier: If name is not a valid repository name
        """
        if isinstance(registry_url, RegistryConfig):
            self.config = registry_url
        else:
            self.config = RegistryConfig(url=registry_url, timeout=timeout)
        self.name = RepositoryName(name)
        self.connector = connector
        self.session = session
        self._owns_session = session is None

    @property
    def registry_url(self) -> str:
        return self.config.base_url

    @property
    def repository_url(self) -> str:
        return f"{self.config.base_url}/v2/{self.name}"

    async def __aenter__(self) -> "RegistryClient":
        """Enter async context manager."""
        if not self.session:
            self.session = create_session(self.config, self.connector)
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()

    async def close(self) -> None:
        """Close the client session if the client created it."""
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    @asynccontextmanager
    async def _request(
        self, method: str, url: Union[str, URL], **kwargs: Any
    ) -> AsyncIterator[aiohttp.ClientResponse]:
        """Send one request, mapping transport failures to TransportError."""
        if self.session is None or self.session.closed:
            raise RuntimeError(
                "RegistryClient session is not open; use 'async with RegistryClient(...)'"
            )

        logger.debug("%s %s", method, url)
        try:
            async with self.session.request(method, url, **kwargs) as resp:
                yield resp
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"{method} {url} failed: {e!r}") from e

    async def ping(self) -> bool:
        """Check if the registry implements the v2 API.

        ``GET /v2/`` answers 200 on an open registry and 401 on one that
        requires authentication; both count as supported.

        Returns:
            True if v2 API is supported

        Raises:
            TransportError: If the registry cannot be reached
        """
        async with self._request("GET", f"{self.config.base_url}/v2/") as resp:
            return is_success(resp.status) or resp.status == 401

    async def list_tags(self, n: int | None = None, last: str | None = None) -> list[str]:
        """List tags of the repository.

        ``GET /v2/<name>/tags/list``

        Args:
            n: Maximum number of tags to return
            last: Return tags lexically after this one

        Returns:
            Tags in the order the registry sent them

        Raises:
            TransportError: If the request fails
            RegistryError: If the registry answers with an error
            DecodeError: If the body is not a tag list
        """
        params: dict[str, str] = {}
        if n is not None:
            params["n"] = str(n)
        if last is not None:
            params["last"] = last

        url = f"{self.repository_url}/tags/list"
        async with self._request("GET", url, params=params or None) as resp:
            await raise_for_registry_error(resp)
            body = await resp.read()
            status = resp.status

        return _decode_tag_list(body, status)

    async def get_manifest(self, reference: Union[str, Reference]) -> ImageManifest:
        """Retrieve a manifest by tag or digest.

        ``GET /v2/<name>/manifests/<reference>``

        Raises:
            InvalidIdentifier: If reference is malformed
            TransportError: If the request fails
            RegistryError: If the registry answers with an error
            DecodeError: If the body is not a manifest
        """
        reference = _as_reference(reference)
        url = f"{self.repository_url}/manifests/{reference}"
        headers = {"Accept": ", ".join(ACCEPTED_MANIFEST_TYPES)}

        async with self._request("GET", url, headers=headers) as resp:
            await raise_for_registry_error(resp)
            body = await resp.read()

        return ImageManifest.from_json(body)

    async def push_manifest(
        self, reference: Union[str, Reference], manifest: ImageManifest
    ) -> URL:
        """Upload a manifest under a tag or digest.

        ``PUT /v2/<name>/manifests/<reference>``

        Every blob the manifest refers to must have been pushed already.

        Returns:
            URL of the stored manifest (from the Location header)

        Raises:
            InvalidIdentifier: If reference is malformed
            TransportError: If the request fails
            RegistryError: If the registry rejects the manifest
            MissingLocation: If the registry does not say where it stored it
        """
        reference = _as_reference(reference)
        url = f"{self.repository_url}/manifests/{reference}"
        manifest_data = manifest.to_json()
        headers = {"Content-Type": manifest.media_type or OCI_IMAGE_MANIFEST}

        async with self._request("PUT", url, data=manifest_data, headers=headers) as resp:
            location = await location_from_response(resp)

        logger.info("Pushed manifest %s:%s", self.name, reference)
        return location

    async def get_blob(self, digest: Union[str, Digest], verify: bool = True) -> bytes:
        """Download a blob.

        ``GET /v2/<name>/blobs/<digest>``

        Args:
            digest: Blob digest
            verify: Check that the content hashes to ``digest``

        Returns:
            Blob content exactly as sent by the registry

        Raises:
            InvalidIdentifier: If digest is malformed
            TransportError: If the request fails
            RegistryError: If the registry answers with an error
            DigestMismatchError: If verification is on and the content differs
        """
        digest = _as_digest(digest)
        url = f"{self.repository_url}/blobs/{digest}"

        async with self._request("GET", url) as resp:
            await raise_for_registry_error(resp)
            blob = await resp.read()

        if verify:
            actual = Digest.from_bytes(blob, digest.algorithm)
            if actual != digest:
                raise DigestMismatchError(str(digest), str(actual))
        return blob

    async def blob_exists(self, digest: Union[str, Digest]) -> bool:
        """Check if a blob exists in the repository.

        ``HEAD /v2/<name>/blobs/<digest>``

        Raises:
            InvalidIdentifier: If digest is malformed
            TransportError: If the request fails
            RegistryError: On any status other than 200 or 404
        """
        digest = _as_digest(digest)
        url = f"{self.repository_url}/blobs/{digest}"

        async with self._request("HEAD", url) as resp:
            if resp.status == 404:
                return False
            if not is_success(resp.status):
                # HEAD responses have no body to decode
                raise RegistryError(resp.status, [])
            return True

    async def push_blob(self, blob: Union[bytes, bytearray]) -> URL:
        """Upload a blob in a single request.

        ``POST /v2/<name>/blobs/uploads/`` opens an upload session, then a
        ``PUT <session url>?digest=<digest>`` carries the whole blob.

        Returns:
            URL of the stored blob (from the final Location header)

        Raises:
            TransportError: If either request fails
            RegistryError: If the registry rejects either request
            MissingLocation: If either response lacks a Location header
            DigestMismatchError: If the registry reports a different digest
        """
        try:
            upload = await self._initiate_upload()
        except DistributionError as e:
            e.with_context(f"POST /v2/{self.name}/blobs/uploads/ failed")
            raise

        digest = Digest.from_bytes(blob)
        try:
            return await self._complete_upload(upload, blob, digest)
        except DistributionError as e:
            e.with_context(f"PUT to {upload.location} failed")
            raise

    async def _initiate_upload(self) -> UploadSession:
        url = f"{self.repository_url}/blobs/uploads/"
        async with self._request("POST", url, data=b"") as resp:
            location = await location_from_response(resp)

        logger.debug("Opened upload session %s", location)
        return UploadSession(location)

    async def _complete_upload(
        self, upload: UploadSession, blob: Union[bytes, bytearray], digest: Digest
    ) -> URL:
        headers = {
            "Content-Length": str(len(blob)),
            "Content-Type": OCTET_STREAM,
        }
        url = upload.completion_url(digest)

        async with self._request("PUT", url, data=bytes(blob), headers=headers) as resp:
            location = await location_from_response(resp)
            echoed = resp.headers.get(DIGEST_HEADER)

        if echoed and echoed != str(digest):
            raise DigestMismatchError(str(digest), echoed)

        logger.info("Pushed blob %s (%d bytes) to %s", digest, len(blob), self.name)
        return location


def _as_reference(reference: Union[str, Reference]) -> Reference:
    if isinstance(reference, Reference):
        return reference
    return Reference(reference)


def _as_digest(digest: Union[str, Digest]) -> Digest:
    if isinstance(digest, Digest):
        return digest
    return Digest.parse(digest)


def _decode_tag_list(body: bytes, status: int) -> list[str]:
    """Decode a ``{"name": ..., "tags": [...]}`` document."""
    try:
        document = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"Tag list is not valid JSON: {e}", status) from e

    if not isinstance(document, dict) or not isinstance(document.get("name"), str):
        raise DecodeError("Tag list must be an object with a 'name' string", status)

    tags = document.get("tags")
    # registry:2 reports a repository whose tags were all deleted as null
    if tags is None:
        return []
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise DecodeError("Tag list 'tags' must be a list of strings", status)
    return tags
