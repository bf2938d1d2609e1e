"""Data models for bots."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

BOTS_COLLECTION = "bots"


class Bot(BaseModel):
    """A named system prompt owned by one user."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_id: str = Field(alias="userId")
    name: str
    system_prompt: str = Field(alias="systemPrompt")
    description: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    shared_from: str | None = Field(default=None, alias="sharedFrom")


class BotUpdate(BaseModel):
    """Partial update of a bot's editable fields."""

    name: str | None = None
    system_prompt: str | None = None
    description: str | None = None

    @model_validator(mode="after")
    def check_not_empty(self) -> "BotUpdate":
        """Require at least one field to change."""
        if self.name is None and self.system_prompt is None and self.description is None:
            raise ValueError("BotUpdate needs at least one field")
        return self

    def to_fields(self) -> dict[str, str]:
        """Stored field names and values for the fields that are set."""
        fields = {}
        if self.name is not None:
            fields["name"] = self.name
        if self.system_prompt is not None:
            fields["systemPrompt"] = self.system_prompt
        if self.description is not None:
            fields["description"] = self.description
        return fields


class BotDraft(BaseModel):
    """Pre-filled values for the bot creation flow."""

    name: str = ""
    system_prompt: str = ""
    description: str | None = None
    shared_from: str | None = None
