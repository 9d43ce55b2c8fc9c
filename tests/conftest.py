"""Shared fixtures: an in-memory npm registry serving real gzip tarballs."""

import hashlib
import io
import json
import os
import tarfile
from urllib.parse import unquote

import pytest

from cli_config import ClientConfig
from registry.npm.client import NpmClient

REGISTRY_URL = "https://registry.test"


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code=200, body=b"", reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._body = body
        self.closed = False

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return json.loads(self._body.decode("utf-8"))

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self._body), chunk_size):
            yield self._body[start:start + chunk_size]

    def close(self):
        self.closed = True


def build_tarball(files, root="package"):
    """Return gzip tar bytes with every file wrapped in ``root/``."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for path, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            info = tarfile.TarInfo(name=f"{root}/{path}")
            info.size = len(data)
            info.mode = 0o755 if path.endswith((".js", ".sh")) else 0o644
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


class FakeRegistry:
    """Serves packuments and tarballs through the ``safe_get`` signature."""

    def __init__(self, base_url=REGISTRY_URL):
        self.base_url = base_url
        self.documents = {}
        self.tarballs = {}
        self.requests = []

    def publish(self, name, version, files=None, dependencies=None, bin=None, shasum=None):
        files = dict(files or {"index.js": f"module.exports = '{name}@{version}';\n"})
        descriptor = {"name": name, "version": version, "dependencies": dependencies or {}}
        if bin is not None:
            descriptor["bin"] = bin
        payload = {"package.json": json.dumps(descriptor, indent=2), **files}
        data = build_tarball(payload)
        short_name = name.rsplit("/", 1)[-1]
        tarball_url = f"{self.base_url}/{name}/-/{short_name}-{version}.tgz"
        self.tarballs[tarball_url] = data

        record = dict(descriptor)
        record["dist"] = {
            "tarball": tarball_url,
            "shasum": shasum or hashlib.sha1(data).hexdigest(),
            "fileCount": len(payload),
            "unpackedSize": sum(len(v.encode("utf-8") if isinstance(v, str) else v)
                                for v in payload.values()),
        }
        doc = self.documents.setdefault(
            name, {"_id": name, "name": name, "dist-tags": {}, "versions": {}}
        )
        doc["versions"][version] = record
        doc["dist-tags"]["latest"] = version
        return record

    def get(self, url, *, context, **kwargs):
        self.requests.append(url)
        if url in self.tarballs:
            return FakeResponse(200, self.tarballs[url])
        name = unquote(url[len(self.base_url) + 1:])
        if name in self.documents:
            return FakeResponse(200, json.dumps(self.documents[name]).encode("utf-8"))
        return FakeResponse(404, b'{"error":"Not found"}', reason="Not Found")

    @property
    def downloads(self):
        return [u for u in self.requests if u.endswith(".tgz")]

    @property
    def metadata_requests(self):
        return [u for u in self.requests if not u.endswith(".tgz")]


def snapshot_tree(root):
    """Map relative path -> file bytes or symlink target for every entry under root."""
    result = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in filenames + dirnames:
            path = os.path.join(dirpath, name)
            rel = os.path.relpath(path, root)
            if os.path.islink(path):
                result[rel] = ("link", os.readlink(path))
            elif os.path.isfile(path):
                with open(path, "rb") as fh:
                    result[rel] = ("file", fh.read())
    return result


@pytest.fixture
def registry():
    return FakeRegistry()


@pytest.fixture
def config(tmp_path):
    return ClientConfig(registry_url=REGISTRY_URL, working_dir=str(tmp_path), retry_max=1)


@pytest.fixture
def client(config, registry):
    return NpmClient(config, http_get=registry.get)
