class PostsError(Exception):
    """Base class for errors the API reports back to the caller"""
    status_code = 500
    message = "Server Error"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class NotFoundError(PostsError):
    status_code = 404
    message = "Not found"


class PostNotFoundError(NotFoundError):
    message = "Post not found"


class CommentNotFoundError(NotFoundError):
    message = "Comment does not exist"


class NotAuthorizedError(PostsError):
    status_code = 401
    message = "User not authorized"


class AlreadyLikedError(PostsError):
    status_code = 400
    message = "Post already liked"


class NotLikedError(PostsError):
    status_code = 400
    message = "Post has not yet been liked"


class StorageError(PostsError):
    """Document store failure; details are logged, never returned"""
    status_code = 500
    message = "Server Error"
