# Overview: Service-layer operations for session tokens.

"""
Session tokens are random 32-byte values handed to the client once and
stored only as SHA-256 hashes. Sessions expire 24 hours after login or after
2 hours without use, and are revocable on logout.
"""

import secrets
import hashlib
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, Owner
from swiftflow.time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    # Tokens are high-entropy, so a fast hash is enough here
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(owner_id: str) -> tuple[SessionToken, str]:
    """
    Create a session for an owner.

    Returns (session_record, plaintext_token).
    """
    owner = db.session.query(Owner).filter_by(id=owner_id).first()
    if not owner or not owner.is_active:
        raise ValueError("Owner not found or inactive")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        owner_id=owner_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> Owner | None:
    """
    Return the Owner behind a token, or None if the token is unknown,
    revoked, expired, idle too long, or belongs to a deactivated owner.

    Updates last_used_at on success.
    """
    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout")
        return None

    owner = session.owner
    if not owner or not owner.is_active:
        _revoke(session, "Owner deactivated")
        return None

    session.last_used_at = now
    db.session.commit()
    return owner


def revoke_session(token: str, reason: str = "Owner logout") -> bool:
    """Returns True if a live session was revoked."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    return True
