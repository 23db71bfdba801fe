from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from praxis.db.base_class import Base


class Datesheet(Base):
    __tablename__ = "datesheets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False, default="")
    source_type = Column(String(16), nullable=False)  # upload | manual
    file_url = Column(Text, nullable=True)

    # JSON string: [{"subject": "...", "exam_date": "YYYY-MM-DD", "syllabus": ["..."]}]
    items_json = Column(Text, nullable=False, default="[]")
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
