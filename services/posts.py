import logging
import uuid
from typing import List

from models.post import Comment, Like, Post, utc_now
from models.user import UserProfile
from services.errors import (
    AlreadyLikedError,
    CommentNotFoundError,
    NotAuthorizedError,
    NotLikedError,
    StorageError,
)
from services.firestore import FirestoreDB

logger = logging.getLogger(__name__)


class PostsService:
    def __init__(self, db: FirestoreDB):
        self.db = db

    def _get_profile(self, user_id: str) -> UserProfile:
        profile = self.db.get_user(user_id)
        if profile is None:
            logger.error(f"No profile stored for authenticated user {user_id}")
            raise StorageError()
        return profile

    def create_post(self, user_id: str, text: str) -> Post:
        """Create a post, snapshotting the author's current name and avatar"""
        profile = self._get_profile(user_id)
        post = Post(
            user=user_id,
            text=text,
            name=profile.name,
            avatar=profile.avatar,
        )
        created = self.db.create_post(post)
        logger.info(f"Post {created.id} created by {user_id}")
        return created

    def list_posts(self) -> List[Post]:
        return self.db.get_all_posts()

    def get_post(self, post_id: str) -> Post:
        return self.db.get_post(post_id)

    def delete_post(self, post_id: str, user_id: str) -> None:
        post = self.db.get_post(post_id)

        # Only the author may remove a post
        if post.user != user_id:
            raise NotAuthorizedError()

        self.db.delete_post(post_id)
        logger.info(f"Post {post_id} removed by {user_id}")

    def like_post(self, post_id: str, user_id: str) -> List[Like]:
        def add_like(post: Post) -> List[Like]:
            if any(like.user == user_id for like in post.likes):
                raise AlreadyLikedError()
            post.likes.insert(0, Like(user=user_id))
            return post.likes

        return self.db.update_post(post_id, add_like)

    def unlike_post(self, post_id: str, user_id: str) -> List[Like]:
        def remove_like(post: Post) -> List[Like]:
            users = [like.user for like in post.likes]
            if user_id not in users:
                raise NotLikedError()
            del post.likes[users.index(user_id)]
            return post.likes

        return self.db.update_post(post_id, remove_like)

    def add_comment(self, post_id: str, user_id: str, text: str) -> List[Comment]:
        """Prepend a comment to the post; newest comments come first"""
        # Surface a missing post before the profile lookup
        self.db.get_post(post_id)
        profile = self._get_profile(user_id)
        comment = Comment(
            id=uuid.uuid4().hex,
            user=user_id,
            text=text,
            name=profile.name,
            avatar=profile.avatar,
            date=utc_now(),
        )

        def prepend_comment(post: Post) -> List[Comment]:
            post.comments.insert(0, comment)
            return post.comments

        return self.db.update_post(post_id, prepend_comment)

    def delete_comment(self, post_id: str, comment_id: str, user_id: str) -> List[Comment]:
        def remove_comment(post: Post) -> List[Comment]:
            index = next(
                (i for i, comment in enumerate(post.comments) if comment.id == comment_id),
                None,
            )
            if index is None:
                raise CommentNotFoundError()

            # Check user
            if post.comments[index].user != user_id:
                raise NotAuthorizedError()

            del post.comments[index]
            return post.comments

        return self.db.update_post(post_id, remove_comment)
