import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.config import Settings
from shared.database import init_db, make_engine, make_session_factory
from shared.errors import ServiceError
from shared.llm import AIGateway
from catalog_service.routes import build_router as build_catalog_router
from feedback_service.routes import build_router as build_feedback_router
from maintenance_service.routes import build_router as build_maintenance_router
from opportunity_service.routes import build_router as build_opportunity_router
from profile_service.routes import build_router as build_profile_router
from quiz_service.routes import build_router as build_quiz_router
from recommendation_engine.routes import build_router as build_recommendation_router
from .middleware import TokenVerifier, make_auth_middleware

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("api-gateway")


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
    field = ".".join(loc) or "body"
    if first.get("type") == "missing":
        return f"Missing required field: {field}"
    msg = str(first.get("msg", "invalid value"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"Invalid field {field}: {msg}"


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(SQLAlchemyError)
    async def database_error(request: Request, exc: SQLAlchemyError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "Database error"})


def create_app(
    settings: Optional[Settings] = None,
    session_factory=None,
    llm: Optional[AIGateway] = None,
    token_verifier: Optional[TokenVerifier] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    if session_factory is None:
        engine = make_engine(settings.database_url)
        init_db(engine)
        session_factory = make_session_factory(engine)

    verifier = token_verifier or TokenVerifier(settings.auth_service_url)

    # built on first use so a missing API key only fails the AI endpoints
    cached: dict[str, AIGateway] = {}
    if llm is not None:
        cached["llm"] = llm

    def get_llm() -> AIGateway:
        if "llm" not in cached:
            cached["llm"] = AIGateway.from_settings(settings)
        return cached["llm"]

    app = FastAPI(title="Avsar Guidance API", version="1.0.0")
    _register_error_handlers(app)

    app.middleware("http")(make_auth_middleware(verifier, settings.service_role_key))

    origins = settings.cors_origins
    allow_credentials = True
    if origins == ["*"]:
        # Browsers reject "*" with credentials
        allow_credentials = False

    # outermost; auth responses carry CORS headers too
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(build_recommendation_router(session_factory, get_llm))
    app.include_router(build_opportunity_router(session_factory, get_llm))
    app.include_router(build_feedback_router(session_factory))
    app.include_router(build_maintenance_router(session_factory))
    app.include_router(build_quiz_router(session_factory, get_llm))
    app.include_router(build_profile_router(session_factory))
    app.include_router(build_catalog_router(session_factory))

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
