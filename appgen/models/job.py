from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from appgen.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Job(Base):
    __tablename__ = "generation_jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)  # job_<ms>_<rand>
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    app_type: Mapped[str] = mapped_column(String(32), nullable=False, default="other")  # crud|dashboard|other
    complexity: Mapped[str] = mapped_column(String(32), nullable=False, default="moderate")  # simple|moderate
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")  # pending|processing|completed|failed
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    result_key: Mapped[str | None] = mapped_column(String(512), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
