import logging
from contextlib import asynccontextmanager

import firebase_admin
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from firebase_admin import credentials
from starlette.middleware.cors import CORSMiddleware

from config import get_settings
from context import RequestContextMiddleware, describe_request
from routes.posts import router as posts_router
from services.errors import PostsError
from services.firestore import FirestoreDB
from services.posts import PostsService

settings = get_settings()

logging.basicConfig(level=settings.log_level,
                    format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize Firebase Admin SDK
    cred = credentials.Certificate(settings.firebase_credentials)
    firebase_app = firebase_admin.initialize_app(cred)

    # Initialize dependencies
    firestore = FirestoreDB(
        firebase_app,
        posts_collection=settings.posts_collection,
        users_collection=settings.users_collection,
    )
    app.state.posts_service = PostsService(firestore)
    logger.info("Firestore client ready")

    yield
    # Cleanup resources
    firebase_admin.delete_app(firebase_app)


app = FastAPI(lifespan=lifespan)

# middleware to set request context
app.add_middleware(RequestContextMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PostsError)
async def posts_error_handler(request: Request, exc: PostsError):
    if exc.status_code >= 500:
        logger.error(f"{describe_request()} failed: {exc.message}", exc_info=exc.__cause__ or exc)
        return PlainTextResponse("Server Error", status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content={"msg": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "msg": error["msg"],
            "param": ".".join(str(part) for part in error["loc"][1:]),
            "location": error["loc"][0] if error["loc"] else "body",
        }
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"errors": errors})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} failed: {str(exc)}")
    return PlainTextResponse("Server Error", status_code=500)


# Include routers
app.include_router(posts_router, prefix="/api/posts", tags=["posts"])
