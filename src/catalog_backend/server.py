import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from catalog_backend.api.books import books_router
from catalog_backend.api.exceptions import error_code
from catalog_backend.database import get_engine
from catalog_backend.model import Base
from catalog_backend.permissions.core import get_access_policy
from catalog_backend.settings import settings

logger = logging.getLogger(__name__)

def startup_logic():
    Base.metadata.create_all(get_engine())

    policy = get_access_policy()
    logger.info(f"Access policy loaded; restricted area [{policy.facts.restricted_area}]")

@asynccontextmanager
async def lifespan(app: FastAPI):

    if settings.DEBUG_MODE != "production":
        startup_logic()

    yield

app = FastAPI(lifespan=lifespan)

origins = [
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag"],
)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exception: StarletteHTTPException):
    return JSONResponse(
        status_code=exception.status_code,
        headers=getattr(exception, "headers", None),
        content={
            "success": False,
            "error": {
                "code": error_code(exception),
                "message": exception.detail,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "path": request.url.path,
            },
        },
    )

app.include_router(
    books_router,
    prefix="/books",
    tags=["books"]
)

@app.get("/", tags=["status"])
def get_status():
    return {"success": True, "status": "ok"}

@app.head("/", status_code=204)
def get_status_head():
    return
