from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional
from famli.core.database import get_db
from famli.core.rate_limiter import api_limiter, rate_limit
from famli.models.guardian import Guardian
from famli.models.user import User
from famli.routes.auth import get_current_user
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/guardians",
    tags=["Guardians"],
    dependencies=[Depends(rate_limit(api_limiter))],
)

class GuardianCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=8, max_length=32)
    relationship: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=2000)

class GuardianUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=8, max_length=32)
    relationship: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=2000)

class GuardianResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    relationship: Optional[str] = Field(None, validation_alias="relationship_label")
    notes: Optional[str] = None


@router.get("", response_model=List[GuardianResponse])
async def list_guardians(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return (
        db.query(Guardian)
        .filter(Guardian.user_id == current_user.id)
        .order_by(Guardian.created_at)
        .all()
    )


@router.post("", response_model=GuardianResponse, status_code=status.HTTP_201_CREATED)
async def create_guardian(
    payload: GuardianCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    guardian = Guardian(
        user_id=current_user.id,
        name=payload.name.strip(),
        email=payload.email,
        phone=payload.phone,
        relationship_label=payload.relationship,
        notes=payload.notes,
    )
    db.add(guardian)
    db.commit()
    db.refresh(guardian)
    logger.info(f"Guardian created: {guardian.id} for user {current_user.id}")
    return guardian


def _get_owned_guardian(guardian_id: str, user: User, db: Session) -> Guardian:
    """Guardião do usuário logado; o de outro usuário responde 404 como se não existisse."""
    guardian = (
        db.query(Guardian)
        .filter(Guardian.id == guardian_id, Guardian.user_id == user.id)
        .first()
    )
    if not guardian:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Guardião não encontrado"
        )
    return guardian


@router.put("/{guardian_id}", response_model=GuardianResponse)
async def update_guardian(
    guardian_id: str,
    payload: GuardianUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    guardian = _get_owned_guardian(guardian_id, current_user, db)
    updates = payload.model_dump(exclude_unset=True)

    if updates.get("name") is not None:
        guardian.name = updates["name"].strip()
    if "email" in updates:
        guardian.email = updates["email"]
    if "phone" in updates:
        guardian.phone = updates["phone"]
    if "relationship" in updates:
        guardian.relationship_label = updates["relationship"]
    if "notes" in updates:
        guardian.notes = updates["notes"]

    db.commit()
    db.refresh(guardian)
    logger.info(f"Guardian updated: {guardian.id}")
    return guardian


@router.delete("/{guardian_id}")
async def delete_guardian(
    guardian_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    guardian = _get_owned_guardian(guardian_id, current_user, db)
    db.delete(guardian)
    db.commit()
    logger.info(f"Guardian deleted: {guardian_id}")
    return {"message": "Guardião removido"}
