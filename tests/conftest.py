import threading
import uuid
from typing import Callable, Dict, List, Optional, TypeVar

import pytest
from fastapi.testclient import TestClient

import dependencies
from main import app
from models.post import Post
from models.user import UserProfile
from services.errors import PostNotFoundError
from services.firestore import is_valid_document_id
from services.posts import PostsService

T = TypeVar("T")


class InMemoryFirestore:
    """Store double with the same surface as FirestoreDB"""

    def __init__(self):
        self.users: Dict[str, UserProfile] = {}
        self.posts: Dict[str, Post] = {}
        self._lock = threading.Lock()

    def add_user(self, user_id: str, name: str, avatar: str = "") -> UserProfile:
        profile = UserProfile(id=user_id, name=name, avatar=avatar)
        self.users[user_id] = profile
        return profile

    def add_post(self, post: Post) -> Post:
        stored = post.model_copy(update={"id": post.id or uuid.uuid4().hex}, deep=True)
        self.posts[stored.id] = stored
        return stored.model_copy(deep=True)

    def _require(self, post_id: str) -> Post:
        if not is_valid_document_id(post_id) or post_id not in self.posts:
            raise PostNotFoundError()
        return self.posts[post_id]

    def get_user(self, user_id: str) -> Optional[UserProfile]:
        return self.users.get(user_id)

    def get_all_posts(self) -> List[Post]:
        posts = sorted(self.posts.values(), key=lambda post: post.date, reverse=True)
        return [post.model_copy(deep=True) for post in posts]

    def get_post(self, post_id: str) -> Post:
        return self._require(post_id).model_copy(deep=True)

    def create_post(self, post: Post) -> Post:
        return self.add_post(post.model_copy(update={"id": None}))

    def delete_post(self, post_id: str) -> None:
        self._require(post_id)
        del self.posts[post_id]

    def update_post(self, post_id: str, mutate: Callable[[Post], T]) -> T:
        with self._lock:
            post = self._require(post_id).model_copy(deep=True)
            result = mutate(post)
            self.posts[post_id] = post
            return result


def auth_header(user_id: str) -> dict:
    return {"Authorization": f"Bearer token-{user_id}"}


def fake_verify_id_token(token, **kwargs):
    if not token.startswith("token-"):
        raise ValueError("Could not verify token")
    return {"uid": token[len("token-"):], "email": f"{token[len('token-'):]}@example.com"}


@pytest.fixture
def store():
    store = InMemoryFirestore()
    store.add_user("alice", "Alice", "//avatar/alice")
    store.add_user("bob", "Bob", "//avatar/bob")
    return store


@pytest.fixture
def service(store):
    return PostsService(store)


@pytest.fixture
def client(service, monkeypatch):
    monkeypatch.setattr(dependencies, "verify_id_token", fake_verify_id_token)
    app.state.posts_service = service
    yield TestClient(app, raise_server_exceptions=False)
    del app.state.posts_service
