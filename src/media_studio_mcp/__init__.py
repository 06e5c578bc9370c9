"""MCP server for Imagen/Veo media generation with an on-disk artifact index."""

from .artifacts import ArtifactStore, resource_uri
from .config import Settings
from .errors import (
    ConfigurationError,
    GenerationAPIError,
    InputResolutionError,
    MediaStudioError,
    MetadataNotFoundError,
    PollingCancelledError,
    PollingTimeoutError,
    StorageWriteError,
)
from .models import ArtifactRecord, DeliveryOptions, ImageConfig, VideoConfig
from .studio import MediaStudio, build_studio

__all__ = [
    "ArtifactRecord",
    "ArtifactStore",
    "ConfigurationError",
    "DeliveryOptions",
    "GenerationAPIError",
    "ImageConfig",
    "InputResolutionError",
    "MediaStudio",
    "MediaStudioError",
    "MetadataNotFoundError",
    "PollingCancelledError",
    "PollingTimeoutError",
    "Settings",
    "StorageWriteError",
    "VideoConfig",
    "build_studio",
    "resource_uri",
]
