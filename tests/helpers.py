"""Test helpers: an in-memory registry and naming utilities."""

import hashlib
import json
import os
import time
import uuid
from dataclasses import dataclass, field

from aiohttp import web

TEST_REPO = "test_repo"


def generate_test_id() -> str:
    """Generate unique test identifier."""
    timestamp = int(time.time() * 1000) % 10000  # Last 4 digits of ms timestamp
    uuid_part = str(uuid.uuid4())[:8]
    worker_id = os.getenv("PYTEST_XDIST_WORKER", "main")
    return f"{worker_id}-{timestamp}-{uuid_part}"


def make_repo_name(base_name: str, test_id: str) -> str:
    """Create isolated repository name."""
    return f"test-{test_id}-{base_name}"


def sha256_digest(data: bytes) -> str:
    return "sha256:" + hashlib.sha256(data).hexdigest()


def registry_error(
    status: int, code: str, message: str, detail: object = None
) -> web.Response:
    """Build an OCI distribution error response."""
    body = {"errors": [{"code": code, "message": message, "detail": detail}]}
    return web.json_response(body, status=status)


@dataclass
class RecordedRequest:
    method: str
    path: str
    query: dict[str, str]
    headers: dict[str, str]
    body: bytes


@dataclass
class FakeRegistry:
    """In-memory registry speaking enough of the distribution API for tests.

    Upload sessions are handed out as path-only Location values carrying a
    ``_state`` query parameter, like registry:2 does.
    """

    blobs: dict[str, bytes] = field(default_factory=dict)
    manifests: dict[tuple[str, str], bytes] = field(default_factory=dict)
    tags: dict[str, list[str]] = field(default_factory=dict)
    uploads: dict[str, str] = field(default_factory=dict)
    requests: list[RecordedRequest] = field(default_factory=list)

    def app(self) -> web.Application:
        app = web.Application(middlewares=[self._record])
        app.router.add_get("/v2/", self._base)
        app.router.add_get("/v2/{name:.+}/tags/list", self._tags_list)
        app.router.add_get("/v2/{name:.+}/manifests/{reference}", self._get_manifest)
        app.router.add_put("/v2/{name:.+}/manifests/{reference}", self._put_manifest)
        app.router.add_post("/v2/{name:.+}/blobs/uploads/", self._start_upload)
        app.router.add_put("/v2/{name:.+}/blobs/uploads/{session}", self._finish_upload)
        app.router.add_get("/v2/{name:.+}/blobs/{digest}", self._get_blob)
        return app

    def add_blob(self, data: bytes) -> str:
        digest = sha256_digest(data)
        self.blobs[digest] = data
        return digest

    def add_manifest(self, name: str, tag: str, manifest: dict) -> str:
        data = json.dumps(manifest).encode("utf-8")
        digest = sha256_digest(data)
        self.manifests[(name, tag)] = data
        self.manifests[(name, digest)] = data
        self.tags.setdefault(name, [])
        if tag not in self.tags[name]:
            self.tags[name].append(tag)
        return digest

    @web.middleware
    async def _record(self, request: web.Request, handler):
        body = await request.read()
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.path,
                query=dict(request.query),
                headers=dict(request.headers),
                body=body,
            )
        )
        return await handler(request)

    async def _base(self, request: web.Request) -> web.Response:
        return web.json_response({})

    async def _tags_list(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        if name not in self.tags:
            return registry_error(404, "NAME_UNKNOWN", "repository name not known to registry")
        return web.json_response({"name": name, "tags": self.tags[name]})

    async def _get_manifest(self, request: web.Request) -> web.Response:
        key = (request.match_info["name"], request.match_info["reference"])
        if key not in self.manifests:
            return registry_error(404, "MANIFEST_UNKNOWN", "manifest unknown")
        data = self.manifests[key]
        return web.Response(
            body=data,
            content_type="application/vnd.oci.image.manifest.v1+json",
            headers={"Docker-Content-Digest": sha256_digest(data)},
        )

    async def _put_manifest(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        reference = request.match_info["reference"]
        data = await request.read()
        manifest = json.loads(data)
        for layer in manifest.get("layers", []):
            if layer["digest"] not in self.blobs:
                return registry_error(
                    400, "MANIFEST_BLOB_UNKNOWN", "blob unknown to registry", layer["digest"]
                )

        digest = sha256_digest(data)
        self.manifests[(name, reference)] = data
        self.manifests[(name, digest)] = data
        if ":" not in reference:
            self.tags.setdefault(name, []).append(reference)
        return web.Response(
            status=201,
            headers={
                "Location": f"/v2/{name}/manifests/{digest}",
                "Docker-Content-Digest": digest,
            },
        )

    async def _start_upload(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        session = str(uuid.uuid4())
        self.uploads[session] = name
        return web.Response(
            status=202,
            headers={
                "Location": f"/v2/{name}/blobs/uploads/{session}?_state=opaque",
                "Range": "0-0",
            },
        )

    async def _finish_upload(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        session = request.match_info["session"]
        if self.uploads.pop(session, None) != name:
            return registry_error(404, "BLOB_UPLOAD_UNKNOWN", "blob upload unknown to registry")

        data = await request.read()
        digest = request.query.get("digest")
        if digest != sha256_digest(data):
            return registry_error(400, "DIGEST_INVALID", "provided digest did not match uploaded content")

        self.blobs[digest] = data
        return web.Response(
            status=201,
            headers={
                "Location": f"/v2/{name}/blobs/{digest}",
                "Docker-Content-Digest": digest,
            },
        )

    async def _get_blob(self, request: web.Request) -> web.Response:
        digest = request.match_info["digest"]
        if digest not in self.blobs:
            return registry_error(404, "BLOB_UNKNOWN", "blob unknown to registry", digest)
        return web.Response(body=self.blobs[digest], content_type="application/octet-stream")
