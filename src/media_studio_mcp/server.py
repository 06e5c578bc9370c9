import json
import logging
import sys
import threading
from functools import partial
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

import anyio
from mcp.server.fastmcp import FastMCP
from pydantic import Field

from .artifacts import ArtifactStore
from .config import settings
from .models import (
    DEFAULT_IMAGE_TO_VIDEO_PROMPT,
    AspectRatio,
    DeliveryOptions,
    ImageConfig,
    MediaKind,
    PersonGeneration,
    VideoConfig,
)
from .options import coerce_bool
from .responses import ContentBlock, build_artifact_response, build_list_payload, to_content
from .studio import GenerationOutcome, MediaStudio, build_studio

# Configure logging to stderr to avoid interfering with JSON-RPC on stdout
logging.basicConfig(
    stream=sys.stderr,
    level=settings.MEDIA_STUDIO_LOG_LEVEL.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("media-studio-mcp")

T = TypeVar("T")

_store: Optional[ArtifactStore] = None
_studio: Optional[MediaStudio] = None


def configure(store: Optional[ArtifactStore] = None, studio: Optional[MediaStudio] = None) -> None:
    """Installs the store and studio the tools use; passing None resets them."""
    global _store, _studio
    if store is None and studio is not None:
        store = studio.store
    _store = store
    _studio = studio


def get_store() -> ArtifactStore:
    global _store
    if _store is None:
        store = ArtifactStore(settings.STORAGE_DIR)
        store.initialize()
        _store = store
    return _store


def get_studio() -> MediaStudio:
    global _studio
    if _studio is None:
        _studio = build_studio(settings, store=get_store())
    return _studio


async def _run_blocking(func: Callable[[], T], cancel: Optional[threading.Event] = None) -> T:
    try:
        return await anyio.to_thread.run_sync(func, abandon_on_cancel=True)
    except anyio.get_cancelled_exc_class():
        if cancel is not None:
            cancel.set()
        raise


def _artifact_content(outcome: GenerationOutcome, message: str) -> List[ContentBlock]:
    response = build_artifact_response(outcome.records, message)
    return to_content(response, outcome.inline_data, outcome.primary.mime_type)


def _image_reference(image: Union[str, Dict[str, Any]]) -> tuple[Any, Optional[str]]:
    if isinstance(image, dict):
        return image, image.get("mimeType")
    return image, None


def _list_content(kind: MediaKind) -> str:
    records = get_store().list_records(kind)
    return json.dumps(build_list_payload(kind, records), indent=2)


@mcp.tool(
    name="generateImage",
    annotations={
        "title": "Image Generation Tool",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True
    }
)
async def generate_image(
    prompt: str = Field(..., description="Text prompt describing the image", min_length=1, max_length=1000),
    numberOfImages: int = Field(1, description="Number of images to generate", ge=1, le=4),
    includeFullData: Union[bool, str] = Field(False, description="Include the base64 image data in the response"),
) -> List[ContentBlock]:
    """
    Generate an image based on a prompt.

    Returns:
        The image (when includeFullData is set) followed by a JSON payload
        with id, resourceUri, filepath and metadata.
    """
    logger.info("Generating image for prompt of %s chars", len(prompt))
    studio = get_studio()
    options = DeliveryOptions(include_full_data=coerce_bool(includeFullData, False))
    outcome = await _run_blocking(partial(
        studio.generate_image,
        prompt,
        ImageConfig(number_of_images=numberOfImages),
        options,
    ))
    return _artifact_content(outcome, "Image generated successfully")


async def _generate_video(
    prompt: str,
    config: VideoConfig,
    options: DeliveryOptions,
    image: Optional[Any] = None,
    image_mime_type: Optional[str] = None,
) -> List[ContentBlock]:
    studio = get_studio()
    cancel = threading.Event()
    outcome = await _run_blocking(
        partial(
            studio.generate_video,
            prompt,
            config,
            options,
            image=image,
            image_mime_type=image_mime_type,
            cancel=cancel,
        ),
        cancel,
    )
    return _artifact_content(outcome, "Video generated successfully")


def _video_config(
    aspectRatio: str,
    personGeneration: str,
    numberOfVideos: int,
    durationSeconds: int,
    enhancePrompt: Union[bool, str, None],
    negativePrompt: Optional[str],
) -> VideoConfig:
    return VideoConfig(
        aspect_ratio=aspectRatio,
        person_generation=personGeneration,
        number_of_videos=numberOfVideos,
        duration_seconds=durationSeconds,
        enhance_prompt=coerce_bool(enhancePrompt, False),
        negative_prompt=negativePrompt or "",
    )


def _delivery(includeFullData: Union[bool, str, None], autoDownload: Union[bool, str, None]) -> DeliveryOptions:
    return DeliveryOptions(
        include_full_data=coerce_bool(includeFullData, False),
        auto_download=coerce_bool(autoDownload, True),
    )


@mcp.tool(
    name="generateVideoFromText",
    annotations={
        "title": "Text-to-Video Generation Tool",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True
    }
)
async def generate_video_from_text(
    prompt: str = Field(..., description="Text prompt describing the video", min_length=1, max_length=1000),
    aspectRatio: AspectRatio = Field("16:9", description="Video aspect ratio"),
    personGeneration: PersonGeneration = Field("dont_allow", description="Whether people may be generated"),
    numberOfVideos: int = Field(1, description="Number of videos to generate (1 or 2)", ge=1, le=2),
    durationSeconds: int = Field(5, description="Video length in seconds", ge=5, le=8),
    enhancePrompt: Union[bool, str] = Field(False, description="Let the provider enhance the prompt"),
    negativePrompt: str = Field("", description="Things the video should avoid"),
    includeFullData: Union[bool, str] = Field(False, description="Include the base64 video data in the response"),
    autoDownload: Union[bool, str] = Field(True, description="Download the video into local storage"),
) -> List[ContentBlock]:
    """
    Generate a video based on a text prompt.

    Blocks until the provider finishes the long-running operation or the
    configured maximum wait is exceeded.
    """
    logger.info("Generating video from text prompt")
    return await _generate_video(
        prompt,
        _video_config(aspectRatio, personGeneration, numberOfVideos, durationSeconds, enhancePrompt, negativePrompt),
        _delivery(includeFullData, autoDownload),
    )


@mcp.tool(
    name="generateVideoFromImage",
    annotations={
        "title": "Image-to-Video Generation Tool",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True
    }
)
async def generate_video_from_image(
    image: Union[Dict[str, str], str] = Field(
        ...,
        description="ImageContent object {type, mimeType, data}, an image URL, a file path, or base64 data",
    ),
    prompt: str = Field(DEFAULT_IMAGE_TO_VIDEO_PROMPT, description="Text prompt guiding the video", min_length=1, max_length=1000),
    aspectRatio: AspectRatio = Field("16:9", description="Video aspect ratio"),
    personGeneration: PersonGeneration = Field("dont_allow", description="Whether people may be generated"),
    numberOfVideos: int = Field(1, description="Number of videos to generate (1 or 2)", ge=1, le=2),
    durationSeconds: int = Field(5, description="Video length in seconds", ge=5, le=8),
    enhancePrompt: Union[bool, str] = Field(False, description="Let the provider enhance the prompt"),
    negativePrompt: str = Field("", description="Things the video should avoid"),
    includeFullData: Union[bool, str] = Field(False, description="Include the base64 video data in the response"),
    autoDownload: Union[bool, str] = Field(True, description="Download the video into local storage"),
) -> List[ContentBlock]:
    """
    Generate a video based on an image prompt.
    """
    logger.info("Generating video from image")
    reference, mime_type = _image_reference(image)
    return await _generate_video(
        prompt or DEFAULT_IMAGE_TO_VIDEO_PROMPT,
        _video_config(aspectRatio, personGeneration, numberOfVideos, durationSeconds, enhancePrompt, negativePrompt),
        _delivery(includeFullData, autoDownload),
        image=reference,
        image_mime_type=mime_type,
    )


async def _get_artifact(kind: MediaKind, artifact_id: str, includeFullData: Union[bool, str, None]) -> List[ContentBlock]:
    store = get_store()
    include = coerce_bool(includeFullData, False)

    def _load() -> GenerationOutcome:
        record = store.get(kind, artifact_id)
        inline = store.read_bytes(record) if include else None
        return GenerationOutcome(records=[record], inline_data=inline)

    outcome = await _run_blocking(_load)
    return _artifact_content(outcome, f"{kind.capitalize()} retrieved successfully")


@mcp.tool(
    name="getImage",
    annotations={
        "title": "Get Generated Image",
        "readOnlyHint": True,
        "idempotentHint": True
    }
)
async def get_image(
    id: str = Field(..., description="The ID of a previously generated image"),
    includeFullData: Union[bool, str] = Field(False, description="Include the base64 image data in the response"),
) -> List[ContentBlock]:
    """
    Returns metadata (and optionally the data) of a stored image.
    """
    logger.info("Getting image with ID: %s", id)
    return await _get_artifact("image", id, includeFullData)


@mcp.tool(
    name="getVideo",
    annotations={
        "title": "Get Generated Video",
        "readOnlyHint": True,
        "idempotentHint": True
    }
)
async def get_video(
    id: str = Field(..., description="The ID of a previously generated video"),
    includeFullData: Union[bool, str] = Field(False, description="Include the base64 video data in the response"),
) -> List[ContentBlock]:
    """
    Returns metadata (and optionally the data) of a stored video.
    """
    logger.info("Getting video with ID: %s", id)
    return await _get_artifact("video", id, includeFullData)


@mcp.tool(
    name="listGeneratedImages",
    annotations={
        "title": "List Generated Images",
        "readOnlyHint": True,
        "idempotentHint": True
    }
)
async def list_generated_images() -> str:
    """
    Returns every stored image, newest first. Unreadable metadata files are skipped.

    Returns:
        str: JSON object {success, count, images: [...]}.
    """
    return await _run_blocking(partial(_list_content, "image"))


@mcp.tool(
    name="listGeneratedVideos",
    annotations={
        "title": "List Generated Videos",
        "readOnlyHint": True,
        "idempotentHint": True
    }
)
async def list_generated_videos() -> str:
    """
    Returns every stored video, newest first. Unreadable metadata files are skipped.

    Returns:
        str: JSON object {success, count, videos: [...]}.
    """
    return await _run_blocking(partial(_list_content, "video"))


@mcp.resource("images://{id}")
def image_resource(id: str) -> str:
    """Metadata sidecar of a stored image."""
    return get_store().get("image", id).to_sidecar_json()


@mcp.resource("videos://{id}")
def video_resource(id: str) -> str:
    """Metadata sidecar of a stored video."""
    return get_store().get("video", id).to_sidecar_json()


def main():
    """Entry point for the MCP server."""
    get_store()
    mcp.run()

if __name__ == "__main__":
    main()
