from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from famli.core.database import get_db
from famli.core.rate_limiter import api_limiter, rate_limit
from famli.models.box_item import ItemType
from famli.models.user import User
from famli.routes.auth import get_current_user
from famli.services.box_service import BoxService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/box",
    tags=["Box"],
    dependencies=[Depends(rate_limit(api_limiter))],
)

box_service = BoxService()

# Pydantic Models
class BoxItemCreate(BaseModel):
    type: ItemType = ItemType.INFO
    title: str = Field(..., min_length=1, max_length=512)
    content: Optional[str] = Field(None, max_length=10000)
    category: Optional[str] = Field(None, max_length=50)
    media_url: Optional[str] = Field(None, max_length=1024)
    is_important: bool = False

class BoxItemUpdate(BaseModel):
    type: Optional[ItemType] = None
    title: Optional[str] = Field(None, min_length=1, max_length=512)
    content: Optional[str] = Field(None, max_length=10000)
    category: Optional[str] = Field(None, max_length=50)
    media_url: Optional[str] = Field(None, max_length=1024)
    is_important: Optional[bool] = None
    is_shared: Optional[bool] = None

# Colunas obrigatórias: null no payload é ignorado
REQUIRED_FIELDS = {"type", "title", "is_important", "is_shared"}

class BoxItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    title: str
    content: Optional[str] = None
    category: Optional[str] = None
    media_url: Optional[str] = None
    is_important: bool
    is_shared: bool
    created_at: datetime


@router.get("/items", response_model=List[BoxItemResponse])
async def list_items(
    limit: int = Query(20, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return box_service.list_items(current_user.id, db, limit=limit)


@router.post("/items", response_model=BoxItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    payload: BoxItemCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return box_service.create_item(
        user_id=current_user.id,
        item_type=payload.type.value,
        title=payload.title.strip(),
        content=payload.content,
        category=payload.category,
        media_url=payload.media_url,
        is_important=payload.is_important,
        db=db,
    )


@router.put("/items/{item_id}", response_model=BoxItemResponse)
async def update_item(
    item_id: str,
    payload: BoxItemUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    updates = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field not in REQUIRED_FIELDS
    }
    if "type" in updates:
        updates["type"] = updates["type"].value
    if "title" in updates:
        updates["title"] = updates["title"].strip()

    item = box_service.update_item(current_user.id, item_id, db, **updates)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item não encontrado"
        )
    return item


@router.delete("/items/{item_id}")
async def delete_item(
    item_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not box_service.delete_item(current_user.id, item_id, db):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item não encontrado"
        )
    return {"message": "Item removido"}
