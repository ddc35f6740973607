from sqlalchemy.orm import declarative_base, Mapped, mapped_column, relationship
from sqlalchemy import Boolean, CheckConstraint, Integer, String, Text, DateTime, ForeignKey
from datetime import datetime, timezone
from typing import Optional
import uuid

Base = declarative_base()

MESSAGE_ROLES = ("user", "assistant", "system")


def _uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    # Naive UTC; SQLite has no timezone storage
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Chat(Base):
    __tablename__ = "chats"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(256))
    system_prompt: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)

    messages: Mapped[list["Message"]] = relationship(
        back_populates="chat",
        order_by="Message.created_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    preferences: Mapped[Optional["Preference"]] = relationship(
        back_populates="chat",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'assistant', 'system')", name="ck_messages_role"),
    )
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    chat_id: Mapped[str] = mapped_column(String(36), ForeignKey("chats.id", ondelete="CASCADE"), index=True)
    role: Mapped[str] = mapped_column(String(16))  # one of MESSAGE_ROLES
    content: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    chat: Mapped[Chat] = relationship(back_populates="messages")


class Preference(Base):
    __tablename__ = "preferences"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    chat_id: Mapped[str] = mapped_column(String(36), ForeignKey("chats.id", ondelete="CASCADE"), unique=True)
    size: Mapped[str] = mapped_column(String(32))
    housing: Mapped[str] = mapped_column(String(64))
    allergies: Mapped[str] = mapped_column(Text, default="")
    activity: Mapped[str] = mapped_column(String(32))
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    chat: Mapped[Chat] = relationship(back_populates="preferences")


class AnimalProfile(Base):
    __tablename__ = "animal_profiles"
    __table_args__ = (
        CheckConstraint("age_months >= 0", name="ck_animal_profiles_age_months"),
    )
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    species: Mapped[str] = mapped_column(String(64))
    name: Mapped[str] = mapped_column(String(128))
    breed: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    age_months: Mapped[int] = mapped_column(Integer)
    sex: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    size: Mapped[str] = mapped_column(String(32), index=True)
    good_with_kids: Mapped[bool] = mapped_column(Boolean, default=False)
    good_with_pets: Mapped[bool] = mapped_column(Boolean, default=False)
    hypoallergenic: Mapped[bool] = mapped_column(Boolean, default=False)
    energy_level: Mapped[str] = mapped_column(String(32))
    description: Mapped[str] = mapped_column(Text)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
