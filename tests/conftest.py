"""Root pytest configuration for openshift-imagesource tests."""
import base64
import json

import httpx
import pytest

from openshift_imagesource.client import MetadataClient
from openshift_imagesource.fakes import FakeDelegateOpener
from openshift_imagesource.image_source import LazyImageSource
from openshift_imagesource.reference import ImageStreamReference
from openshift_imagesource.settings import Settings

DIGEST_A = "sha256:" + "a" * 64
DIGEST_B = "sha256:" + "b" * 64


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take significant time)"
    )


class FakeMetadataAPI:
    """
    In-memory metadata API served through httpx.MockTransport.

    Streams and images are stored as JSON-able dicts; every request is
    recorded so tests can assert on call counts and paths.
    """

    def __init__(self):
        self.streams = {}
        self.images = {}
        self.requests = []
        self.fail_with = None

    def add_stream(self, namespace, stream, tags):
        """tags: {tag: [(pull_spec, image), ...]}, most recent first."""
        self.streams[(namespace, stream)] = {
            "kind": "ImageStream",
            "metadata": {"name": stream, "namespace": namespace},
            "status": {
                "dockerImageRepository": f"172.30.1.1:5000/{namespace}/{stream}",
                "tags": [
                    {
                        "tag": tag,
                        "items": [
                            {"dockerImageReference": spec, "image": image, "generation": 1}
                            for spec, image in events
                        ],
                    }
                    for tag, events in tags.items()
                ],
            },
        }

    def add_image(self, namespace, stream, image, signatures):
        """signatures: [(type, raw_content_bytes), ...]"""
        self.images[(namespace, stream, image)] = {
            "kind": "ImageStreamImage",
            "image": {
                "metadata": {"name": image},
                "signatures": [
                    {"type": sig_type, "content": base64.b64encode(content).decode()}
                    for sig_type, content in signatures
                ],
            },
        }

    def stream_requests(self):
        return [r for r in self.requests if "/imagestreams/" in r.url.path]

    def image_requests(self):
        return [r for r in self.requests if "/imagestreamimages/" in r.url.path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with

        parts = request.url.path.strip("/").split("/")
        # oapi/v1/namespaces/{ns}/{resource}/{name}
        namespace, resource, name = parts[3], parts[4], parts[5]
        if resource == "imagestreams":
            body = self.streams.get((namespace, name))
        else:
            stream, _, image = name.partition("@")
            body = self.images.get((namespace, stream, image))

        if body is None:
            return httpx.Response(404, json={
                "kind": "Status",
                "status": "Failure",
                "message": f"{resource} \"{name}\" not found",
                "reason": "NotFound",
                "code": 404,
            })
        return httpx.Response(200, content=json.dumps(body).encode())


@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings(api_url="https://api.example.com:8443", token="s3cr3t")


@pytest.fixture
def reference():
    return ImageStreamReference(registry="registry.example.com", namespace="ns", stream="app", tag="latest")


@pytest.fixture
def api():
    return FakeMetadataAPI()


@pytest.fixture
def client(api, reference, settings):
    """Metadata client wired to the fake API."""
    with MetadataClient(reference, settings, transport=httpx.MockTransport(api.handler)) as c:
        yield c


@pytest.fixture
def opener():
    return FakeDelegateOpener(manifest=b'{"schemaVersion": 2}')


@pytest.fixture
def source(client, opener):
    """Unresolved image source for registry.example.com/ns/app:latest."""
    src = LazyImageSource(client, opener, system_context={"tls_verify": False})
    yield src
    src.close()
