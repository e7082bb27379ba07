"""Domain Entities - Back-office operators"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from typing import Optional


class User(BaseModel):
    """Back-office operator"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str = "front-desk"
    disabled: bool = False

    class Config:
        from_attributes = True


class UserInDB(User):
    """Operator with hashed password"""
    hashed_password: str
