from types import SimpleNamespace

import pytest

from media_studio_mcp.artifacts import ArtifactStore
from media_studio_mcp.poller import OperationPoller
from media_studio_mcp.studio import MediaStudio
from media_studio_mcp.submitter import GenerationSubmitter


class FakeOperation:
    def __init__(self, name="operations/test-op", done=False, response=None, error=None):
        self.name = name
        self.done = done
        self.response = response
        self.error = error


def video_response(*uris, video_bytes=None, mime_type="video/mp4"):
    return SimpleNamespace(generated_videos=[
        SimpleNamespace(video=SimpleNamespace(uri=uri, video_bytes=video_bytes, mime_type=mime_type))
        for uri in uris
    ])


class FakeModels:
    def __init__(self):
        self.image_calls = []
        self.video_calls = []
        self.images = [SimpleNamespace(image=SimpleNamespace(image_bytes=b"\x89PNG fake", mime_type="image/png"))]
        self.operation = FakeOperation()
        self.image_error = None

    def generate_images(self, model, prompt, config):
        self.image_calls.append({"model": model, "prompt": prompt, "config": config})
        if self.image_error:
            raise self.image_error
        return SimpleNamespace(generated_images=self.images)

    def generate_videos(self, **kwargs):
        self.video_calls.append(kwargs)
        return self.operation


class FakeOperations:
    """Replays a scripted sequence of operation states, one per status check."""

    def __init__(self):
        self.sequence = []
        self.calls = 0
        self.error = None

    def get(self, operation):
        self.calls += 1
        if self.error:
            raise self.error
        if self.sequence:
            return self.sequence.pop(0)
        return operation


class FakeFiles:
    def __init__(self):
        self.payload = b"fake-mp4-bytes"
        self.downloads = []

    def download(self, file):
        self.downloads.append(file)
        return self.payload


class RecordingWait(list):
    """Records each wait instead of blocking; honours an already-set cancel token."""

    def __call__(self, delay, cancel=None):
        self.append(delay)
        return cancel is not None and cancel.is_set()


class FakeClient:
    def __init__(self):
        self.models = FakeModels()
        self.operations = FakeOperations()
        self.files = FakeFiles()


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def store(tmp_path):
    artifact_store = ArtifactStore(tmp_path / "storage")
    artifact_store.initialize()
    return artifact_store


@pytest.fixture
def sleeps():
    return RecordingWait()


@pytest.fixture
def studio(fake_client, store, sleeps):
    submitter = GenerationSubmitter(fake_client, image_model="imagen-test", video_model="veo-test")
    poller = OperationPoller(
        submitter.refresh,
        interval_seconds=10,
        max_wait_seconds=60,
        wait=sleeps,
    )
    return MediaStudio(store=store, submitter=submitter, poller=poller)
