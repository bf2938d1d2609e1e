"""Data models for identity."""

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """A signed-in user. Only the id is used by the rest of the package."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Unique user identifier")
    email: str | None = None
    display_name: str | None = None
