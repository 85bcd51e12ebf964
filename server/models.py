from datetime import datetime
from typing import Any, Dict, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# SQLite INTEGER is a signed 64-bit value
MAX_COUNT = 2**63 - 1


# ---------- Write payload (strict) ----------
class CountPayload(BaseModel):
    # lax ints: 2, 2.0 and "2" are accepted, 2.5, -1 and true are not
    tea: int = Field(ge=0, le=MAX_COUNT)
    other: int = Field(ge=0, le=MAX_COUNT)

    @field_validator("tea", "other", mode="before")
    @classmethod
    def reject_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("must be a number, not a boolean")
        return value


# ---------- Stored row ----------
class CountRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    # kept as stored text when the store hands back something unparseable
    created_at: Union[datetime, str] = Field(alias="createdAt")
    tea: int
    other: int

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
