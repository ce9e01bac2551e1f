"""User and profile endpoints."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database.models import User
from ..database.queries import get_user_profile, upsert_user_profile
from ..database.session import get_db
from ..schemas.schemas import ProfileResponse, ProfileUpdate, UserCreate, UserResponse

# Configure router to not append trailing slash automatically
router = APIRouter()


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("", response_model=UserResponse)
@router.post("/", response_model=UserResponse)
def create_user(user: UserCreate, db: Session = Depends(get_db)):
    """Create a user. Email, when given, must be unique."""
    email = user.email.strip() if user.email else None
    if email and db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already exists")

    db_user = User(name=user.name.strip() if user.name else None, email=email)
    db.add(db_user)
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))
    db.refresh(db_user)
    return db_user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return _get_user_or_404(db, user_id)


@router.get("/{user_id}/profile")
def get_profile(user_id: int, db: Session = Depends(get_db)):
    """Stored goals and preferences; ``profile`` is null until first saved."""
    _get_user_or_404(db, user_id)
    profile = get_user_profile(db, user_id)
    return {"profile": ProfileResponse.model_validate(profile) if profile else None}


@router.put("/{user_id}/profile")
def update_profile(user_id: int, payload: ProfileUpdate, db: Session = Depends(get_db)):
    """Save goals and preferences; only fields present in the body are changed."""
    _get_user_or_404(db, user_id)
    try:
        profile = upsert_user_profile(db, user_id, payload.model_dump(exclude_unset=True))
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))
    db.refresh(profile)
    return {"profile": ProfileResponse.model_validate(profile)}
