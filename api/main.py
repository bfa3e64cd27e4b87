import logging
import sys
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request

from di.container import ApplicationContainer as DependencyContainer
from api.shared.dtos import ErrorResponse
from api.shared.exceptions import ChatStoreException
from core.logging import configure_logging

configure_logging()

logger = logging.getLogger("chats")


class CustomFastAPI(FastAPI):
    container: DependencyContainer


@asynccontextmanager
async def lifespan(_app: CustomFastAPI):
    logger.info("Starting application initialization...")
    start_time = time.time()

    try:
        logger.info("Initializing database connection...")
        db_start = time.time()
        db_resource = _app.container.infrastructure.database()
        if db_resource.engine is None:
            await db_resource.init()
        await db_resource.ping()
        logger.info(
            f"✅ Database connection established in {time.time() - db_start:.2f}s"
        )
        logger.info(
            f"✅ Application startup completed in {time.time() - start_time:.2f}s"
        )
    except Exception as e:
        logger.exception(f"❌ Failed to initialize application: {str(e)}")
        raise

    yield

    try:
        db_resource = _app.container.infrastructure.database()
        if db_resource:
            await db_resource.shutdown()
        logger.info("Application shutdown complete")
    except Exception:
        logger.exception("Error during shutdown")


def create_fastapi_app(container: DependencyContainer | None = None) -> CustomFastAPI:
    origins = [
        "http://localhost",
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    _app = CustomFastAPI(
        title="Persona Chat API",
        description="Conversation store for user / AI persona chat sessions",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Initialize dependency container
    _app.container = container or DependencyContainer()
    _app.container.wire(modules=[sys.modules[__name__]])
    _app.container.init_resources()

    logging.getLogger("uvicorn.error").disabled = False
    logging.getLogger("uvicorn.access").disabled = False

    _app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include feature routers
    from api.features.chats.router import router as chats_router

    _app.include_router(chats_router, prefix="/api/v1/personas/chats", tags=["Chats"])

    register_routes(_app)
    register_exception_handlers(_app)
    return _app


def register_routes(_app: FastAPI) -> None:
    @_app.get("/")
    async def root():
        return {"message": "Persona Chat API is running", "status": "ok"}

    @_app.get("/health")
    async def health():
        return {"status": "ok"}

    @_app.get("/ready")
    async def ready():
        return {"status": "ok"}


def register_exception_handlers(_app: FastAPI) -> None:
    @_app.exception_handler(ChatStoreException)
    async def chat_store_exception_handler(request: Request, exc: ChatStoreException):
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code}: {exc.message}")
        body = ErrorResponse(
            error=exc.__class__.__name__,
            error_code=exc.error_code,
            detail=exc.message,
            status_code=exc.status_code,
            details=exc.details or None,
        )
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    @_app.exception_handler(404)
    async def not_found_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=404,
            content={
                "error": "Not Found",
                "detail": f"{exc.detail} : {request.url}",
                "status_code": 404,
            },
        )

    @_app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"error": "Validation Error", "detail": str(exc), "status_code": 422},
        )

    @_app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": "An unexpected error occurred",
                "status_code": 500,
            },
        )


app = create_fastapi_app()
