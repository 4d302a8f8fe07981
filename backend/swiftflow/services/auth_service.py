# Overview: Service-layer operations for owner accounts; encapsulates business logic and database work.

"""
Owner Authentication Service

Stands in for the hosted authentication service: it issues the opaque owner
id every other document is keyed by. Passwords are hashed with bcrypt;
session tokens are handled separately (see session_service.py).

Signup creates an empty store shell with reports switched off and the
account email pre-filled as the digest recipient. The public profile shell
is published by the mirror once the signup commit lands.
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Owner
from ..models.owners import SETUP_BUSINESS_INFO
from ..signals import owner_written
from ..validation import ConflictError, validate_email


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class PermissionDeniedError(Exception):
    """Caller lacks rights to the target document. Surfaced as-is, never retried."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Minimum 8 characters with at least one letter and one digit.

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r"[A-Za-z]", password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """Hash password using bcrypt; cost factor from BCRYPT_ROUNDS (default 12)."""
    validate_password_strength(password)
    rounds = int(current_app.config.get("BCRYPT_ROUNDS", 12))
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw is timing-safe; malformed hashes simply fail."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (TypeError, ValueError):
        return False


def register_owner(email: str, password: str) -> Owner:
    """
    Create a new store owner (empty shell, setup wizard at BUSINESS_INFO).

    Raises ValidationError for a malformed email, ConflictError if the email is
    taken, PasswordValidationError for weak passwords.
    """
    email = validate_email(email)

    existing = db.session.query(Owner).filter_by(email=email).first()
    if existing:
        raise ConflictError("An account with this email already exists")

    owner = Owner(
        email=email,
        password_hash=hash_password(password),
        setup_step=SETUP_BUSINESS_INFO,
        is_registered=False,
        email_reports_enabled=False,
        email_report_recipient=email,
        email_report_frequency="weekly",
    )
    db.session.add(owner)
    db.session.commit()

    owner_written.send(owner)
    return owner


def authenticate(email: str, password: str) -> Owner | None:
    """Returns the active Owner if credentials are valid, None otherwise."""
    owner = db.session.query(Owner).filter(
        Owner.email == (email or "").strip().lower(),
        Owner.is_active.is_(True),
    ).first()

    if not owner:
        return None

    if verify_password(password or "", owner.password_hash):
        return owner

    return None
