from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MediaKind = Literal["image", "video"]
AspectRatio = Literal["16:9", "9:16"]
PersonGeneration = Literal["dont_allow", "allow_adult"]

DEFAULT_IMAGE_TO_VIDEO_PROMPT = "Generate a video from this image"

def _utc_now() -> datetime:
    return datetime.now(timezone.utc)

class ImageConfig(BaseModel):
    number_of_images: int = Field(1, ge=1, le=4)

class VideoConfig(BaseModel):
    aspect_ratio: AspectRatio = "16:9"
    person_generation: PersonGeneration = "dont_allow"
    number_of_videos: Literal[1, 2] = 1
    duration_seconds: int = Field(5, ge=5, le=8)
    enhance_prompt: bool = False
    negative_prompt: str = ""

class DeliveryOptions(BaseModel):
    include_full_data: bool = False
    auto_download: bool = True

class ArtifactRecord(BaseModel):
    """Metadata sidecar stored next to every artifact file."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    media_kind: MediaKind
    created_at: datetime = Field(default_factory=_utc_now)
    prompt: str
    mime_type: str
    size: int
    filepath: Optional[str] = None
    video_url: Optional[str] = None

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # Timestamps written without an offset are treated as UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_sidecar_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2, exclude_none=True)

@dataclass
class ResolvedImage:
    data: bytes
    mime_type: str

@dataclass
class GeneratedMedia:
    """One provider result: raw bytes plus the MIME type the provider declared."""

    data: bytes
    mime_type: str

class JobState(str, Enum):
    SUBMITTED = "Submitted"
    POLLING = "Polling"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    TIMED_OUT = "TimedOut"
    CANCELLED = "Cancelled"

TERMINAL_STATES = frozenset(
    {JobState.SUCCEEDED, JobState.FAILED, JobState.TIMED_OUT, JobState.CANCELLED}
)

@dataclass
class GenerationJob:
    """In-flight video generation; lives only for the duration of one request."""

    operation: Any
    state: JobState = JobState.SUBMITTED
    started_at: datetime = field(default_factory=_utc_now)
    history: List[JobState] = field(default_factory=lambda: [JobState.SUBMITTED])

    def transition(self, state: JobState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Job already finished in state {self.state.value}")
        self.state = state
        self.history.append(state)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES
