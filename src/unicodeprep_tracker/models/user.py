"""Identity supplied by the (external) authentication layer."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class UserType(StrEnum):
    STUDENT = "student"
    PROFESSOR = "professor"


class User(BaseModel):
    id: str
    email: str = ""
    user_type: UserType = UserType.STUDENT
    user_data: dict[str, Any] | None = Field(default=None)
