import logging
from typing import Annotated, Optional

from fastapi import Body, Request, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from firebase_admin.auth import verify_id_token
from pydantic import ValidationError

from models.post import TextRequest
from models.user import User
from services.posts import PostsService

logger = logging.getLogger(__name__)


def get_current_user(request: Request) -> User:
    """
    Verify Firebase ID token from Authorization header and return user info

    Must stay a plain def; the revocation check is a blocking network call.
    """
    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=401,
            detail="No token, authorization denied"
        )

    token = authorization.split("Bearer ")[1]
    try:
        # Verify the Firebase ID token
        decoded_token = verify_id_token(token, check_revoked=True, clock_skew_seconds=10)
    except Exception as e:
        logger.warning(f"Invalid authentication token: {str(e)}")
        raise HTTPException(
            status_code=401,
            detail="Token is not valid"
        )

    return User(
        user_id=decoded_token["uid"],
        email=decoded_token.get("email"),
    )


def get_text_body(body: Annotated[Optional[dict], Body()] = None) -> TextRequest:
    """Validate a {text} body; a missing body is treated as an empty object"""
    try:
        return TextRequest.model_validate(body or {})
    except ValidationError as e:
        errors = [
            {**error, "loc": ("body", *error["loc"])}
            for error in e.errors(include_url=False)
        ]
        raise RequestValidationError(errors, body=body)


async def get_posts_service(request: Request) -> PostsService:
    """Get posts service from app state"""
    return request.app.state.posts_service


# Type annotations for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
TextBody = Annotated[TextRequest, Depends(get_text_body)]
Posts = Annotated[PostsService, Depends(get_posts_service)]
