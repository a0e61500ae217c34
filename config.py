import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    firebase_credentials: str = "./firebase.json"
    posts_collection: str = "posts"
    users_collection: str = "users"
    cors_origins: List[str] = ["http://localhost:3000"]
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Build settings from environment variables (and .env if present)"""
    origins = os.environ.get("CORS_ORIGINS", "http://localhost:3000")
    return Settings(
        firebase_credentials=os.environ.get("FIREBASE_CREDENTIALS", "./firebase.json"),
        posts_collection=os.environ.get("POSTS_COLLECTION", "posts"),
        users_collection=os.environ.get("USERS_COLLECTION", "users"),
        cors_origins=[origin.strip() for origin in origins.split(",") if origin.strip()],
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
