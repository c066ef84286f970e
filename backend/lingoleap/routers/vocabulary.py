from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import storage
from ..db import get_db
from ..models import User
from ..schemas import VocabularyOut
from .auth import get_current_user


router = APIRouter(prefix="/api/vocabulary", tags=["vocabulary"])


@router.get("", response_model=List[VocabularyOut])
def list_words(
    level: Optional[str] = Query(default=None),
    topic: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    return storage.list_vocabulary(db, level=level, topic=topic)


@router.get("/review", response_model=List[VocabularyOut])
def due_for_review(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Words the caller has practiced whose next review time has passed."""
    return storage.due_vocabulary(db, user.id)
