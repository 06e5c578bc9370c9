import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

from google import genai

from .artifacts import ArtifactStore
from .config import Settings
from .errors import ConfigurationError, GenerationAPIError, MediaStudioError
from .inputs import ImageInput, resolve_image_input
from .models import (
    ArtifactRecord,
    DeliveryOptions,
    GenerationJob,
    ImageConfig,
    VideoConfig,
)
from .poller import OperationPoller
from .submitter import DEFAULT_VIDEO_MIME_TYPE, GenerationSubmitter

logger = logging.getLogger(__name__)


@dataclass
class GenerationOutcome:
    records: List[ArtifactRecord]
    # Raw bytes of the first record, kept when the caller asked for full data.
    inline_data: Optional[bytes] = None
    job: Optional[GenerationJob] = None

    @property
    def primary(self) -> ArtifactRecord:
        return self.records[0]


@dataclass
class MediaStudio:
    """
    Runs the generation pipelines: normalize input, submit, poll (video only),
    materialize, and read back from the artifact index.
    """

    store: ArtifactStore
    submitter: GenerationSubmitter
    poller: OperationPoller
    fetch_timeout_seconds: float = 30.0

    def generate_image(
        self,
        prompt: str,
        config: ImageConfig,
        options: DeliveryOptions,
    ) -> GenerationOutcome:
        logger.info("Generating image from text prompt")
        generated = self.submitter.generate_images(prompt, config)
        records: List[ArtifactRecord] = []
        try:
            for item in generated:
                records.append(self.store.materialize(item.data, item.mime_type, prompt, "image"))
        except MediaStudioError:
            self._discard(records)
            raise
        inline = generated[0].data if options.include_full_data else None
        return GenerationOutcome(records=records, inline_data=inline)

    def generate_video(
        self,
        prompt: str,
        config: VideoConfig,
        options: DeliveryOptions,
        image: Optional[ImageInput] = None,
        image_mime_type: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> GenerationOutcome:
        resolved = None
        if image is not None:
            logger.info("Generating video from image")
            resolved = resolve_image_input(
                image,
                image_mime_type,
                timeout=self.fetch_timeout_seconds,
            )
        else:
            logger.info("Generating video from text prompt")

        job = GenerationJob(operation=self.submitter.submit_video(prompt, config, resolved))
        operation = self.poller.run(job, cancel)

        response = getattr(operation, "response", None)
        videos = getattr(response, "generated_videos", None) or []
        if not videos:
            raise GenerationAPIError(
                "No videos generated in the response",
                kind=GenerationAPIError.EMPTY_RESULT,
            )

        records: List[ArtifactRecord] = []
        inline = None
        try:
            for generated in videos:
                video = getattr(generated, "video", None)
                if video is None:
                    raise GenerationAPIError(
                        "Generated video missing payload",
                        kind=GenerationAPIError.MISSING_PAYLOAD,
                    )
                video_url = getattr(video, "uri", None)
                if not options.auto_download:
                    mime_type = getattr(video, "mime_type", None) or DEFAULT_VIDEO_MIME_TYPE
                    records.append(self.store.record_remote(prompt, mime_type, video_url))
                    continue

                media = self.submitter.download_video(video)
                records.append(self.store.materialize(
                    media.data,
                    media.mime_type,
                    prompt,
                    "video",
                    video_url=video_url,
                ))
                if inline is None and options.include_full_data:
                    inline = media.data
        except MediaStudioError:
            self._discard(records)
            raise

        return GenerationOutcome(records=records, inline_data=inline, job=job)

    def _discard(self, records: List[ArtifactRecord]) -> None:
        if records:
            logger.error("Generation failed after %d artifact(s) were saved; removing them", len(records))
        for record in records:
            self.store.discard(record)


def build_studio(settings: Settings, store: Optional[ArtifactStore] = None) -> MediaStudio:
    """Composition root: builds the provider client once and wires every component."""
    if not settings.GOOGLE_API_KEY:
        raise ConfigurationError("GOOGLE_API_KEY is not set")

    client = genai.Client(api_key=settings.GOOGLE_API_KEY)
    submitter = GenerationSubmitter(
        client,
        image_model=settings.GOOGLE_IMAGEN_MODEL,
        video_model=settings.GOOGLE_VEO_MODEL,
    )
    poller = OperationPoller(
        submitter.refresh,
        interval_seconds=settings.MEDIA_STUDIO_POLL_INTERVAL_SECONDS,
        max_wait_seconds=settings.MEDIA_STUDIO_POLL_MAX_WAIT_SECONDS,
    )
    if store is None:
        store = ArtifactStore(settings.STORAGE_DIR)
        store.initialize()
    return MediaStudio(
        store=store,
        submitter=submitter,
        poller=poller,
        fetch_timeout_seconds=settings.MEDIA_STUDIO_FETCH_TIMEOUT_SECONDS,
    )
