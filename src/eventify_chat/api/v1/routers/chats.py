"""Read-only HTTP view of chats, for clients that render before the socket connects."""
from __future__ import annotations

from fastapi import APIRouter

from eventify_chat.api.deps import CurrentIdentity, UoWDep
from eventify_chat.api.v1.schemas.chat import ChatView, chat_view
from eventify_chat.services import chat_service

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["chats"])


@router.get("", response_model=list[ChatView])
async def list_chats(identity: CurrentIdentity, uow: UoWDep) -> list[ChatView]:
    chats = await chat_service.list_chats(identity, uow)
    return [chat_view(c) for c in chats]


@router.get("/{chat_id}", response_model=ChatView)
async def get_chat(chat_id: str, identity: CurrentIdentity, uow: UoWDep) -> ChatView:
    details = await chat_service.get_chat_history(identity, chat_id, uow)
    return chat_view(details)
