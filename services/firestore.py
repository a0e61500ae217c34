import logging
import re
from contextlib import contextmanager
from typing import Callable, List, Optional, TypeVar

import firebase_admin
from firebase_admin import firestore as fs
from google.api_core.exceptions import GoogleAPIError
from google.cloud import firestore

from context import describe_request
from models.post import Post
from models.user import UserProfile
from services.errors import PostNotFoundError, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RESERVED_ID = re.compile(r"^__.*__$")


def is_valid_document_id(document_id: str) -> bool:
    """Firestore document id rules: no slashes, not '.'/'..', not __reserved__, <= 1500 bytes"""
    if not document_id or document_id in (".", ".."):
        return False
    if "/" in document_id or _RESERVED_ID.match(document_id):
        return False
    return len(document_id.encode("utf-8")) <= 1500


@contextmanager
def storage_errors(action: str):
    try:
        yield
    except GoogleAPIError as e:
        logger.error(f"Firestore error while {action} ({describe_request()}): {str(e)}")
        raise StorageError() from e


class FirestoreDB:
    def __init__(
            self,
            app: Optional[firebase_admin.App] = None,
            posts_collection: str = "posts",
            users_collection: str = "users",
            client=None,
    ):
        self.db = client if client is not None else fs.client(app)
        self.posts_collection = posts_collection
        self.users_collection = users_collection

    def collection(self, name: str):
        return self.db.collection(name)

    def _post_ref(self, post_id: str):
        if not is_valid_document_id(post_id):
            raise PostNotFoundError()
        return self.collection(self.posts_collection).document(post_id)

    @staticmethod
    def _to_post(snapshot) -> Post:
        return Post(id=snapshot.id, **snapshot.to_dict())

    def get_user(self, user_id: str) -> Optional[UserProfile]:
        """Get a user's public profile (name and avatar only)"""
        if not is_valid_document_id(user_id):
            return None
        with storage_errors("loading user"):
            snapshot = self.collection(self.users_collection).document(user_id).get()
        if not snapshot.exists:
            return None

        data = snapshot.to_dict()
        return UserProfile(
            id=snapshot.id,
            name=data.get("name", ""),
            avatar=data.get("avatar", ""),
        )

    def get_all_posts(self) -> List[Post]:
        """Get all posts sorted by creation date descending"""
        with storage_errors("listing posts"):
            posts_ref = self.collection(self.posts_collection) \
                .order_by("date", direction=firestore.Query.DESCENDING) \
                .stream()
            return [self._to_post(doc) for doc in posts_ref]

    def get_post(self, post_id: str) -> Post:
        """Get a post by ID, raising PostNotFoundError if it does not exist"""
        post_ref = self._post_ref(post_id)
        with storage_errors("loading post"):
            snapshot = post_ref.get()
        if not snapshot.exists:
            raise PostNotFoundError()
        return self._to_post(snapshot)

    def create_post(self, post: Post) -> Post:
        """Store a new post under an auto-generated id"""
        with storage_errors("creating post"):
            new_post_ref = self.collection(self.posts_collection).document()
            new_post_ref.set(post.to_document())
        return post.model_copy(update={"id": new_post_ref.id})

    def delete_post(self, post_id: str) -> None:
        post_ref = self._post_ref(post_id)
        with storage_errors("deleting post"):
            post_ref.delete()

    def update_post(self, post_id: str, mutate: Callable[[Post], T]) -> T:
        """
        Apply `mutate` to a post inside a transaction.

        The post is re-read on every attempt so a conflicting write causes a
        retry against fresh data rather than a lost update. Only the likes and
        comments fields are written back.
        """
        post_ref = self._post_ref(post_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def update_in_transaction(transaction, post_ref):
            snapshot = post_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise PostNotFoundError()

            post = self._to_post(snapshot)
            result = mutate(post)

            document = post.to_document()
            transaction.update(post_ref, {
                "likes": document["likes"],
                "comments": document["comments"],
            })
            return result

        with storage_errors("updating post"):
            return update_in_transaction(transaction, post_ref)
