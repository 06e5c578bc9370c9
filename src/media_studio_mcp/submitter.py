import logging
from typing import Any, List, Optional

from google import genai
from google.genai import types

from .errors import GenerationAPIError
from .models import GeneratedMedia, ImageConfig, ResolvedImage, VideoConfig

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME_TYPE = "image/png"
DEFAULT_VIDEO_MIME_TYPE = "video/mp4"


class GenerationSubmitter:
    """
    Builds Imagen/Veo requests from declarative configs and sends them
    through an injected ``genai.Client``.
    """

    def __init__(self, client: genai.Client, image_model: str, video_model: str):
        self._client = client
        self.image_model = image_model
        self.video_model = video_model

    def generate_images(self, prompt: str, config: ImageConfig) -> List[GeneratedMedia]:
        logger.info("Requesting %s image(s) from %s", config.number_of_images, self.image_model)
        try:
            response = self._client.models.generate_images(
                model=self.image_model,
                prompt=prompt,
                config=types.GenerateImagesConfig(number_of_images=config.number_of_images),
            )
        except Exception as e:
            raise GenerationAPIError(
                f"Image generation request failed: {e}",
                kind=GenerationAPIError.SUBMISSION_FAILED,
                detail=str(e),
            ) from e

        generated = getattr(response, "generated_images", None) or []
        if not generated:
            raise GenerationAPIError(
                "No images generated in the response",
                kind=GenerationAPIError.EMPTY_RESULT,
            )

        results: List[GeneratedMedia] = []
        for item in generated:
            image = getattr(item, "image", None)
            data = getattr(image, "image_bytes", None) if image is not None else None
            if not data:
                raise GenerationAPIError(
                    "Generated image missing image bytes",
                    kind=GenerationAPIError.MISSING_PAYLOAD,
                )
            mime_type = getattr(image, "mime_type", None) or DEFAULT_IMAGE_MIME_TYPE
            results.append(GeneratedMedia(data=data, mime_type=mime_type))
        return results

    def build_video_config(self, config: VideoConfig, *, from_image: bool) -> types.GenerateVideosConfig:
        fields: dict[str, Any] = {
            "aspect_ratio": config.aspect_ratio,
            "number_of_videos": config.number_of_videos,
            "duration_seconds": config.duration_seconds,
            "enhance_prompt": config.enhance_prompt,
        }
        # Image-to-video requests reject a person generation policy.
        if not from_image:
            fields["person_generation"] = config.person_generation
        if config.negative_prompt:
            fields["negative_prompt"] = config.negative_prompt
        return types.GenerateVideosConfig(**fields)

    def submit_video(
        self,
        prompt: str,
        config: VideoConfig,
        image: Optional[ResolvedImage] = None,
    ) -> Any:
        """Starts a video generation and returns the long-running operation handle."""
        request: dict[str, Any] = {
            "model": self.video_model,
            "prompt": prompt,
            "config": self.build_video_config(config, from_image=image is not None),
        }
        if image is not None:
            request["image"] = types.Image(image_bytes=image.data, mime_type=image.mime_type)

        logger.info("Submitting video generation to %s", self.video_model)
        try:
            operation = self._client.models.generate_videos(**request)
        except Exception as e:
            raise GenerationAPIError(
                f"Video generation request failed: {e}",
                kind=GenerationAPIError.SUBMISSION_FAILED,
                detail=str(e),
            ) from e

        if operation is None or not getattr(operation, "name", None):
            raise GenerationAPIError(
                "Provider did not return an operation handle",
                kind=GenerationAPIError.SUBMISSION_FAILED,
            )
        logger.info("Video operation started: %s", operation.name)
        return operation

    def refresh(self, operation: Any) -> Any:
        return self._client.operations.get(operation)

    def download_video(self, video: Any) -> GeneratedMedia:
        mime_type = getattr(video, "mime_type", None) or DEFAULT_VIDEO_MIME_TYPE
        data = getattr(video, "video_bytes", None)
        if data:
            return GeneratedMedia(data=data, mime_type=mime_type)

        try:
            data = self._client.files.download(file=video)
        except Exception as e:
            raise GenerationAPIError(
                f"Failed to download generated video: {e}",
                kind=GenerationAPIError.DOWNLOAD_FAILED,
                detail=str(e),
            ) from e
        if not data:
            raise GenerationAPIError(
                "Downloaded video is empty",
                kind=GenerationAPIError.MISSING_PAYLOAD,
            )
        return GeneratedMedia(data=data, mime_type=mime_type)
