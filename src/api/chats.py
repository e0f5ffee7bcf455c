"""Chat history endpoints.

History is stored in the browser (see ``src.ui.history``); these routes only
acknowledge requests so older clients that still call them keep working.
"""

from fastapi import APIRouter

router = APIRouter(prefix="/api/chats", tags=["chats"])

STORAGE_NOTICE = "Chat history is stored in browser storage"


@router.get("")
async def list_chats() -> dict[str, object]:
    return {"message": STORAGE_NOTICE, "chats": []}


@router.get("/{chat_id}")
async def get_chat(chat_id: str) -> dict[str, str]:
    return {"message": STORAGE_NOTICE, "chatId": chat_id}


@router.delete("/{chat_id}")
async def delete_chat(chat_id: str) -> dict[str, str]:
    return {
        "message": f"{STORAGE_NOTICE}. Delete chats from the history sidebar.",
        "chatId": chat_id,
    }
