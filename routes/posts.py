from typing import List

from fastapi import APIRouter

from dependencies import CurrentUser, Posts, TextBody
from models.post import Comment, Like, Post

# Handlers are sync: the Firestore client blocks
router = APIRouter()


@router.post("")
def create_post(
        posts: Posts,
        current_user: CurrentUser,
        post_data: TextBody
) -> Post:
    """Create a post"""
    return posts.create_post(current_user.user_id, post_data.text)


@router.get("")
def get_posts(posts: Posts, current_user: CurrentUser) -> List[Post]:
    """Get all posts, newest first"""
    return posts.list_posts()


@router.get("/{post_id}")
def get_post(posts: Posts, post_id: str, current_user: CurrentUser) -> Post:
    return posts.get_post(post_id)


@router.delete("/{post_id}")
def delete_post(posts: Posts, post_id: str, current_user: CurrentUser) -> dict:
    """Delete a post owned by the current user"""
    posts.delete_post(post_id, current_user.user_id)
    return {"msg": "Post removed"}


@router.put("/like/{post_id}")
def like_post(posts: Posts, post_id: str, current_user: CurrentUser) -> List[Like]:
    return posts.like_post(post_id, current_user.user_id)


@router.put("/unlike/{post_id}")
def unlike_post(posts: Posts, post_id: str, current_user: CurrentUser) -> List[Like]:
    return posts.unlike_post(post_id, current_user.user_id)


@router.post("/comment/{post_id}")
def add_comment(
        posts: Posts,
        post_id: str,
        current_user: CurrentUser,
        comment: TextBody
) -> List[Comment]:
    """Add a comment to a post"""
    return posts.add_comment(post_id, current_user.user_id, comment.text)


@router.delete("/comment/{post_id}/{comment_id}")
def delete_comment(
        posts: Posts,
        post_id: str,
        comment_id: str,
        current_user: CurrentUser
) -> List[Comment]:
    """Delete a comment; only its author may do so"""
    return posts.delete_comment(post_id, comment_id, current_user.user_id)
