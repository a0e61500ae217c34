import html
from datetime import datetime, timezone
from typing import List, Optional

import bleach
from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Like(BaseModel):
    user: str


class Comment(BaseModel):
    id: str
    user: str
    text: str
    name: str = ""
    avatar: str = ""
    date: datetime = Field(default_factory=utc_now)


class Post(BaseModel):
    id: Optional[str] = None
    user: str
    text: str
    name: str = ""
    avatar: str = ""
    date: datetime = Field(default_factory=utc_now)
    likes: List[Like] = []
    comments: List[Comment] = []

    def to_document(self) -> dict:
        """Firestore representation; the id lives in the document path"""
        return self.model_dump(exclude={"id"})


def clean_text(text: str) -> str:
    """Strip all markup and return plain text with entities decoded"""
    text = html.unescape(text)
    return html.unescape(bleach.clean(text, tags=set(), strip=True)).strip()


class TextRequest(BaseModel):
    text: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("text", mode="before")
    @classmethod
    def text_required(cls, value):
        # Blank check runs on the cleaned text so markup-only input is rejected
        text = clean_text(value) if isinstance(value, str) else ""
        if not text:
            raise PydanticCustomError("text_required", "Text is required")
        return text
