"""
account_service.py — Registration, login and profile lookup.
"""

import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth import create_token, hash_password, verify_password
from errors import Conflict, NotFound, Unauthorized, validate
from models.user import User
from schemas import LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def _issue_token(user: User) -> str:
    return create_token({"user_id": user.id, "username": user.username})


class AccountService:
    @staticmethod
    def register(db: Session, data: dict) -> tuple[User, str]:
        body = validate(RegisterRequest, data)
        email = body.email.lower()
        existing = db.query(User).filter(
            or_(func.lower(User.username) == body.username.lower(), User.email == email)
        ).first()
        if existing:
            raise Conflict("User already exists")

        user = User(username=body.username, email=email, hashed_password=hash_password(body.password))
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("User already exists")
        db.refresh(user)
        logger.info(f"Account registered: id={user.id} username={user.username}")
        return user, _issue_token(user)

    @staticmethod
    def login(db: Session, data: dict) -> tuple[User, str]:
        """Authenticate by username or email. Failures never say which part was wrong."""
        body = validate(LoginRequest, data)
        identifier = body.identifier.strip()
        user = db.query(User).filter(
            or_(User.username == identifier, User.email == identifier.lower())
        ).first()
        if not user or not verify_password(body.password, user.hashed_password):
            logger.info("Login failed")
            raise Unauthorized(INVALID_CREDENTIALS)
        return user, _issue_token(user)

    @staticmethod
    def profile(db: Session, user_id: int) -> User:
        user = db.query(User).filter_by(id=user_id).first()
        if not user:
            raise NotFound("User not found")
        return user
