"""Practice text endpoints: public reads and admin management."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from typerace.auth.router import get_current_user
from typerace.config import settings
from typerace.db import add_text_line, delete_text_line, get_text_line, list_text_lines

logger = logging.getLogger(__name__)
router = APIRouter(tags=["texts"])


class TextLineRequest(BaseModel):
    text: str


def require_admin(user=Depends(get_current_user)) -> dict:
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    if user["username"] not in settings.admin_usernames:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


@router.get("/get/textline/{index}")
async def textline(index: int):
    text = get_text_line(index)
    if text is None:
        raise HTTPException(status_code=404, detail="Text line not found")
    return {"index": index, "text": text}


@router.get("/admin/textlines")
async def admin_list(user=Depends(require_admin)):
    return {"lines": list_text_lines()}


@router.post("/admin/textlines", status_code=201)
async def admin_add(payload: TextLineRequest, user=Depends(require_admin)):
    text = payload.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Text is required")
    index = add_text_line(text)
    logger.info(f"{user['username']} added text line {index}")
    return {"index": index, "text": text}


@router.delete("/admin/textlines/{index}")
async def admin_delete(index: int, user=Depends(require_admin)):
    if not delete_text_line(index):
        raise HTTPException(status_code=404, detail="Text line not found")
    logger.info(f"{user['username']} deleted text line {index}")
    return {"message": "Text line deleted"}
