from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from praxis.db.base_class import Base


class VideoSuggestion(Base):
    __tablename__ = "video_suggestions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    youtube_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    suggestions_json: Mapped[str] = mapped_column(Text, nullable=False)  # JSON string: ["...", ...]
