import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from formapi.config import config
from formapi.database import database
from formapi.errors import (
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from formapi.logging_conf import configure_logging
from formapi.routers.form import router as form_router
from formapi.routers.response import router as response_router
from formapi.routers.user import router as user_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # connect database
    await database.connect()
    logger.info("Database connected")
    yield
    # disconnect database
    await database.disconnect()

app = FastAPI(
    title="Formiverse API",
    description="API for building forms and collecting responses",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.CORS_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(user_router, prefix="/api/v1/users", tags=["User"])
app.include_router(form_router, prefix="/api/v1/users", tags=["Form"])
app.include_router(response_router, prefix="/api/v1/users", tags=["Response"])
