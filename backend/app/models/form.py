import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Form(Base):
    """Form definition with its ordered questions stored as a JSONB array.

    Each entry of ``questions`` is a serialized question (see
    ``app.services.builder.models``)::

        {
            "id": "3f2a...",
            "type": "multiple_choice",
            "title": "Pick one",
            "description": null,
            "required": false,
            "options": ["Option 1", "Option 2"],
            "settings": {"multiple": false, "randomize": false, ...}
        }

    Older rows may hold ``questions``/``settings`` as serialized text; readers
    decode both shapes.
    """

    __tablename__ = "forms"
    __table_args__ = (
        Index("ix_forms_user_id", "user_id"),
        Index("ix_forms_user_created", "user_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    questions: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    settings: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    published: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    owner: Mapped["User"] = relationship(back_populates="forms")
    responses: Mapped[list["FormResponse"]] = relationship(back_populates="form", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        state = "published" if self.published else "draft"
        return f"<Form {self.title} ({state})>"
