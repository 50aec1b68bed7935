from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.security import create_access_token, get_password_hash, verify_password
from ..db import get_db
from ..models import User
from ..schemas import Token, UserCreate, UserLogin, UserOut
from ..utils.admin import ensure_admin_role
from .deps import get_current_user

router = APIRouter()


def _issue_token(user: User) -> dict:
    token = Token(
        access_token=create_access_token(user.id),
        token_type="bearer",
        user=UserOut.model_validate(user),
    )
    return {"success": True, "data": token}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user_in: UserCreate, db: Session = Depends(get_db)):
    email = user_in.email.lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise HTTPException(status_code=400, detail="User already exists")

    user = User(
        name=user_in.name.strip(),
        email=email,
        avatar=user_in.avatar,
        password_hash=get_password_hash(user_in.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    ensure_admin_role(db, user)
    return _issue_token(user)


@router.post("/login")
def login(user_in: UserLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == user_in.email.lower()).first()
    if not user or not verify_password(user_in.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    ensure_admin_role(db, user)
    return _issue_token(user)


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {"success": True, "data": UserOut.model_validate(current_user)}
