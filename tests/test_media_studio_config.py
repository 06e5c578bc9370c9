import os
from pathlib import Path
import pytest
from media_studio_mcp.config import Settings
from media_studio_mcp.errors import (
    GenerationAPIError,
    InputResolutionError,
    MediaStudioError,
    MetadataNotFoundError,
    StorageWriteError,
)

_ENV_KEYS = [
    "GOOGLE_API_KEY",
    "STORAGE_DIR",
    "MEDIA_STUDIO_POLL_INTERVAL_SECONDS",
    "MEDIA_STUDIO_POLL_MAX_WAIT_SECONDS",
]

def test_config_defaults(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)

    settings = Settings(_env_file=None)
    assert settings.GOOGLE_API_KEY == ""
    assert settings.STORAGE_DIR == Path("./storage")
    assert settings.MEDIA_STUDIO_POLL_INTERVAL_SECONDS == 10.0
    assert settings.MEDIA_STUDIO_POLL_MAX_WAIT_SECONDS == 600.0

def test_config_env_vars(monkeypatch, tmp_path):
    monkeypatch.setenv("STORAGE_DIR", str(tmp_path))
    monkeypatch.setenv("MEDIA_STUDIO_POLL_INTERVAL_SECONDS", "2.5")
    monkeypatch.setenv("GOOGLE_API_KEY", "secret")

    settings = Settings(_env_file=None)
    assert settings.STORAGE_DIR == tmp_path
    assert settings.MEDIA_STUDIO_POLL_INTERVAL_SECONDS == 2.5
    assert settings.GOOGLE_API_KEY == "secret"

def test_custom_errors():
    err = InputResolutionError("Failed to fetch image: 404", kind=InputResolutionError.FETCH_FAILED, status=404)
    assert err.kind == "FetchFailed"
    assert err.status == 404
    assert isinstance(err, MediaStudioError)

    with pytest.raises(GenerationAPIError):
        raise GenerationAPIError("empty", kind=GenerationAPIError.EMPTY_RESULT)
    with pytest.raises(StorageWriteError):
        raise StorageWriteError("disk full")

def test_metadata_not_found_message():
    assert str(MetadataNotFoundError("image", "abc")) == "Image metadata not found: abc"
    assert str(MetadataNotFoundError("video", "abc")) == "Video metadata not found: abc"
