from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from schemas import LoginRequest, RegisterRequest
from serializers import user_to_dict
from services.account_service import AccountService

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account and sign it in."""
    user, token = AccountService.register(db, body.model_dump())
    return {
        "message": "User created successfully",
        "token": token,
        "user": user_to_dict(user),
    }


@router.post("/login")
async def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate with username or email + password."""
    user, token = AccountService.login(db, body.model_dump())
    return {
        "message": "Login successful",
        "token": token,
        "user": user_to_dict(user),
    }


@router.get("/me")
async def me(db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    """Return the current user's profile."""
    return {"user": user_to_dict(AccountService.profile(db, user_id))}


@router.post("/logout")
async def logout(user_id: int = Depends(get_current_user)):
    """Logout — client should discard the token."""
    return {"message": "Logged out"}
