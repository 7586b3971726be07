from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Index, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eventify_chat.infrastructure.db.base import Base


class ConversationModel(Base):
    __tablename__ = "chat_conversations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    organizer_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true"),
    )
    last_activity: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
        onupdate=text("now()"),
    )

    messages = relationship(
        "MessageModel",
        back_populates="conversation",
        order_by="MessageModel.seq",
        lazy="selectin",
    )

    __table_args__ = (
        # At most one active conversation per (user, organizer) pair.
        Index(
            "uq_chat_conversations_active_pair",
            "user_id",
            "organizer_id",
            unique=True,
            postgresql_where=text("is_active"),
        ),
        Index(
            "ix_chat_conversations_organizer_activity",
            "organizer_id",
            "is_active",
            last_activity.desc(),
        ),
    )
