from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class CategoryRequest(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    color: str = Field(default="blue", min_length=1, max_length=20)
    description: str | None = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped

    @field_validator("description")
    @classmethod
    def blank_description_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class CategoryResponse(BaseModel):
    id: int
    user_id: int
    name: str
    color: str
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
