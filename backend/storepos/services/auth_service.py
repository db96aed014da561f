# Overview: Service-layer operations for auth and staff accounts.

"""
Authentication and User Administration Service

WHY: Every order is attributed to the cashier who rang it up. Uses bcrypt for
password hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters, upper, lower, digit and special char required
- Session tokens managed separately (see session_service.py)
- Users are deactivated, never deleted (orders reference them)
"""

import re

import bcrypt
from flask import current_app

from ..errors import AuthenticationError, ConflictError, UserNotFoundError, ValidationError
from ..extensions import db
from ..models import User
from ..models.auth import ROLES
from storepos.time_utils import utcnow


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt verification; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _normalize_email(email) -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("email is required")
    email = email.strip().lower()
    if "@" not in email:
        raise ValidationError("email must be a valid address")
    return email


def _validate_role(role) -> str:
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    return role


def authenticate(email: str, password: str) -> User:
    """
    Authenticate by email and password.

    Unknown email, inactive account and wrong password all produce the same
    error so the response does not reveal which accounts exist.
    """
    user = db.session.query(User).filter_by(email=_normalize_email(email)).first()

    if not user or not user.is_active or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise UserNotFoundError("User not found", details={"user_id": user_id})
    return user


def create_user(*, name: str, email: str, password: str, role: str) -> User:
    """
    Create a staff account.

    Raises:
        ValidationError: missing fields, weak password, unknown role
        ConflictError: email already in use
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    email = _normalize_email(email)
    _validate_role(role)

    if db.session.query(User).filter_by(email=email).first():
        raise ConflictError("Email is already in use")

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def update_user(user_id: int, patch: dict, *, actor_user_id: int) -> User:
    """
    Partial update. Keys: name, email, role, is_active, password.

    An admin cannot deactivate their own account.
    """
    user = get_user(user_id)

    if user.id == actor_user_id and patch.get("is_active") is False:
        raise ValidationError("You cannot deactivate your own account")

    if "name" in patch:
        if not isinstance(patch["name"], str) or not patch["name"].strip():
            raise ValidationError("name cannot be blank")
        user.name = patch["name"].strip()

    if "email" in patch:
        email = _normalize_email(patch["email"])
        existing = db.session.query(User).filter(User.email == email, User.id != user.id).first()
        if existing:
            raise ConflictError("Email is already in use")
        user.email = email

    if "role" in patch:
        user.role = _validate_role(patch["role"])

    if "is_active" in patch:
        user.is_active = bool(patch["is_active"])

    if patch.get("password"):
        user.password_hash = hash_password(patch["password"])

    db.session.commit()
    return user


def deactivate_user(user_id: int, *, actor_user_id: int) -> User:
    if user_id == actor_user_id:
        raise ValidationError("You cannot delete your own account")

    user = get_user(user_id)
    user.is_active = False
    db.session.commit()
    return user
