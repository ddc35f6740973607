from typing import Any, List, Mapping, Optional
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from .models import AnimalProfile, Chat, Message, Preference, utcnow


async def create_chat(db: AsyncSession, title: str, system_prompt: str) -> Chat:
    chat = Chat(title=title, system_prompt=system_prompt)
    db.add(chat)
    await db.flush()
    return chat


async def get_chat(db: AsyncSession, chat_id: str) -> Optional[Chat]:
    return await db.get(Chat, chat_id)


async def get_chat_with_history(db: AsyncSession, chat_id: str) -> Optional[Chat]:
    """Chat with messages (ascending) and preferences eagerly loaded."""
    q = (
        select(Chat)
        .where(Chat.id == chat_id)
        .options(selectinload(Chat.messages), selectinload(Chat.preferences))
    )
    res = await db.execute(q)
    return res.scalar_one_or_none()


async def list_chats(db: AsyncSession) -> List[Chat]:
    q = select(Chat).order_by(Chat.updated_at.desc())
    res = await db.execute(q)
    return list(res.scalars().all())


async def update_chat(db: AsyncSession, chat: Chat, **fields: Any) -> Chat:
    for key, value in fields.items():
        setattr(chat, key, value)
    chat.updated_at = utcnow()
    await db.flush()
    return chat


async def touch_chat(db: AsyncSession, chat: Chat) -> None:
    chat.updated_at = utcnow()
    await db.flush()


async def delete_chat(db: AsyncSession, chat_id: str) -> None:
    """Delete a chat together with its messages and preference."""
    await db.execute(delete(Message).where(Message.chat_id == chat_id))
    await db.execute(delete(Preference).where(Preference.chat_id == chat_id))
    await db.execute(delete(Chat).where(Chat.id == chat_id))


async def clear_messages(db: AsyncSession, chat_id: str) -> None:
    await db.execute(delete(Message).where(Message.chat_id == chat_id))


async def add_message(db: AsyncSession, chat_id: str, role: str, content: str) -> Message:
    msg = Message(chat_id=chat_id, role=role, content=content)
    db.add(msg)
    await db.flush()
    return msg


async def get_preference(db: AsyncSession, chat_id: str) -> Optional[Preference]:
    q = select(Preference).where(Preference.chat_id == chat_id)
    res = await db.execute(q)
    return res.scalar_one_or_none()


async def upsert_preference(db: AsyncSession, chat_id: str, values: Mapping[str, str]) -> Preference:
    """Create the chat's preference or overwrite every field of the existing one."""
    pref = await get_preference(db, chat_id)
    if pref is None:
        pref = Preference(chat_id=chat_id, **values)
        db.add(pref)
    else:
        for key, value in values.items():
            setattr(pref, key, value)
        pref.updated_at = utcnow()
    await db.flush()
    return pref


async def list_animals(db: AsyncSession, *criteria) -> List[AnimalProfile]:
    q = select(AnimalProfile).order_by(AnimalProfile.created_at.desc())
    if criteria:
        q = q.where(*criteria)
    res = await db.execute(q)
    return list(res.scalars().all())


async def create_animal(db: AsyncSession, values: Mapping[str, Any]) -> AnimalProfile:
    animal = AnimalProfile(**values)
    db.add(animal)
    await db.flush()
    return animal
