from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    """Identity resolved from the bearer token"""
    user_id: str
    email: Optional[str] = None


class UserProfile(BaseModel):
    id: str
    name: str = ""
    avatar: str = ""
