"""Schema for Clever's ``/me`` payload.

    {"type": "student", "data": {"id": "...", "name": {...}, ...}}

Only ``data.id`` is required. ``type`` is optional and everything else under
``data`` is passed through as-is, so the schema allows extra fields at both
levels. Validation happens once, at the identity-mapper boundary.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class RawIdentityData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    # Clever v2 sends a plain string, v3 an object with first/last/middle.
    name: Any = None


class RawIdentity(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str | None = None
    data: RawIdentityData
