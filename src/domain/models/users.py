"""User domain model.

Pure domain object: persistence is structural, so the only database
concern visible here is the table name.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from .columns import Column


class User(BaseModel):
    """An application user.

    id is server-generated: it is None until the row has been inserted.
    email is unique per user and is the natural lookup key besides id.
    """

    __tablename__: ClassVar[str] = "users"

    model_config = ConfigDict(frozen=True)

    id: Annotated[int | None, Column(primary_key=True)] = None
    name: str = Field(max_length=100)
    email: str = Field(max_length=100)
    description: str | None = Field(default=None, max_length=500)
    created_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_date: datetime | None = None
    is_active: bool = True

    @classmethod
    def create(cls, name: str, email: str, description: str | None = None) -> User:
        """Named constructor for a new, not yet persisted, active user."""
        return cls(name=name, email=email, description=description)
