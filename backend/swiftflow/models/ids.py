from __future__ import annotations

import uuid


def new_id() -> str:
    """Opaque document id shared by a private row and its public mirror."""
    return uuid.uuid4().hex
