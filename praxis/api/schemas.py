from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TranscriptItemIn(CamelModel):
    text: str
    start_ms: int
    duration_ms: int = 0
    lang: str | None = None


class ChapterIn(CamelModel):
    title: str
    start_ms: int


class VideoMeta(CamelModel):
    title: str | None = None
    description: str | None = None
    channel: str | None = None
