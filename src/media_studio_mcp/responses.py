import base64
from typing import Any, Dict, List, Optional, Union

from mcp.types import ImageContent, TextContent
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .artifacts import MEDIA_KIND_DIRS, resource_uri
from .models import ArtifactRecord, MediaKind

ContentBlock = Union[TextContent, ImageContent]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ArtifactSummary(_CamelModel):
    id: str
    resource_uri: str
    filepath: Optional[str] = None
    prompt: str
    created_at: str
    mime_type: str
    size: int
    video_url: Optional[str] = None


class ArtifactResponse(_CamelModel):
    success: bool = True
    message: str
    id: str
    resource_uri: str
    filepath: Optional[str] = None
    video_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    additional_artifacts: List[ArtifactSummary] = Field(default_factory=list)


def summarize(record: ArtifactRecord) -> ArtifactSummary:
    return ArtifactSummary(
        id=record.id,
        resource_uri=resource_uri(record.media_kind, record.id),
        filepath=record.filepath,
        prompt=record.prompt,
        created_at=record.created_at.isoformat(),
        mime_type=record.mime_type,
        size=record.size,
        video_url=record.video_url,
    )


def build_artifact_response(
    records: List[ArtifactRecord],
    message: str,
) -> ArtifactResponse:
    """Shapes the payload for the first record; extra outputs are listed separately."""
    primary = records[0]
    return ArtifactResponse(
        message=message,
        id=primary.id,
        resource_uri=resource_uri(primary.media_kind, primary.id),
        filepath=primary.filepath,
        video_url=primary.video_url if primary.media_kind == "video" else None,
        metadata=primary.model_dump(mode="json", by_alias=True, exclude_none=True),
        additional_artifacts=[summarize(record) for record in records[1:]],
    )


def build_list_payload(kind: MediaKind, records: List[ArtifactRecord]) -> Dict[str, Any]:
    return {
        "success": True,
        "count": len(records),
        MEDIA_KIND_DIRS[kind]: [
            summarize(record).model_dump(mode="json", by_alias=True, exclude_none=True)
            for record in records
        ],
    }


def to_content(
    response: ArtifactResponse,
    inline: Optional[bytes] = None,
    mime_type: Optional[str] = None,
) -> List[ContentBlock]:
    """
    Converts a response into MCP content blocks.

    When inline bytes are given they come first as an image block (video bytes
    use the same block type, since MCP has no video content type), followed by
    the JSON text payload.
    """
    content: List[ContentBlock] = []
    if inline:
        content.append(ImageContent(
            type="image",
            mimeType=mime_type or "image/png",
            data=base64.b64encode(inline).decode("ascii"),
        ))
    content.append(TextContent(
        type="text",
        text=response.model_dump_json(by_alias=True, exclude_none=True, indent=2),
    ))
    return content
