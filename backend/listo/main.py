from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from .db.dynamodb.errors import DdbError
from .errors import ListoError
from .middleware.access_log import AccessLogMiddleware
from .middleware.auth import AuthMiddleware
from .middleware.cors import build_allowed_origin_regex, build_allowed_origins
from .middleware.request_context import RequestContextMiddleware
from .observability.logging import configure_logging, get_logger
from .problem_details import problem_from_error, problem_response
from .routers.checklists import router as checklists_router
from .routers.health import router as health_router
from .routers.shared import router as shared_router
from .routers.sharing import router as sharing_router
from .routers.users import router as users_router
from .settings import settings


def create_app() -> FastAPI:
    # Logging must be configured before the app starts handling requests.
    configure_logging(level="INFO")
    log = get_logger("startup")

    # Share tokens cannot be signed without a secret: refuse to start.
    settings.require_signing_secret()

    app = FastAPI(
        title="Listo Checklist API",
        version="1.0.0",
        default_response_class=ORJSONResponse,
        redirect_slashes=False,
    )

    log.info("app_starting", settings=settings.to_log_safe_dict())

    # Middlewares (order matters; last added is outermost)
    # Auth runs inside CORS so auth failures still get CORS headers.
    app.add_middleware(AuthMiddleware)
    app.add_middleware(AccessLogMiddleware, exclude_paths={"/"})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=build_allowed_origins(
            frontend_base_url=settings.frontend_base_url,
            frontend_urls=settings.frontend_urls,
        ),
        allow_origin_regex=build_allowed_origin_regex(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-Id"],
        max_age=3000,
    )
    # Outermost: request context (request-id) wraps everything.
    app.add_middleware(RequestContextMiddleware)

    # Error handlers
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ListoError, _listo_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DdbError, _ddb_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    # Routes (sharing first: /checklist/share/{code} must not be shadowed)
    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(sharing_router)
    app.include_router(shared_router)
    app.include_router(checklists_router)

    return app


def _listo_error_handler(request: Request, exc: ListoError) -> Response:
    log = get_logger("errors")
    if exc.status_code >= 500:
        log.error("request_failed", error=type(exc).__name__, detail=str(exc), path=request.url.path)
    else:
        log.info("request_rejected", error=type(exc).__name__, path=request.url.path)
    return problem_from_error(request=request, exc=exc)


def _ddb_error_handler(request: Request, exc: DdbError) -> Response:
    # Map storage-layer errors to stable HTTP semantics.
    if exc.status_code >= 500:
        get_logger("errors").error(
            "storage_error",
            error=type(exc).__name__,
            operation=exc.operation,
            table=exc.table_name,
            aws_request_id=exc.aws_request_id,
        )
    extensions = {
        "operation": exc.operation,
        "table": exc.table_name,
        "awsRequestId": exc.aws_request_id,
    }
    return problem_from_error(
        request=request,
        exc=exc,
        extensions={k: v for k, v in extensions.items() if v is not None},
    )


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    status_code = int(getattr(exc, "status_code", 500) or 500)
    detail = getattr(exc, "detail", None)

    safe_detail = str(detail) if detail is not None else None
    if status_code == 404 and (not safe_detail or safe_detail == "Not Found"):
        safe_detail = "Route not found"

    return problem_response(request=request, status_code=status_code, detail=safe_detail)


def _validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    errors: list[dict[str, object]] = []
    for e in exc.errors():
        loc = e.get("loc") or ()
        loc_path = ".".join([str(x) for x in loc if x != "body"])
        errors.append(
            {
                "location": list(loc) if isinstance(loc, (list, tuple)) else [],
                "path": loc_path,
                "message": e.get("msg", "Invalid value"),
                "type": e.get("type"),
            }
        )
    return problem_response(
        request=request,
        status_code=422,
        title="Validation Failed",
        detail="Request validation failed",
        errors=errors,
    )


def _unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    # Full traceback goes to the logs; the response stays generic in production.
    rid = getattr(getattr(request, "state", None), "request_id", None)
    user = getattr(getattr(request, "state", None), "user", None)
    user_sub = getattr(user, "sub", None) if user else None
    get_logger("unhandled").exception(
        "unhandled_exception",
        request_id=str(rid) if rid else None,
        http_method=str(getattr(request, "method", "") or "").upper() or None,
        path=str(getattr(getattr(request, "url", None), "path", "") or ""),
        user_sub=str(user_sub) if user_sub else None,
    )

    return problem_response(
        request=request,
        status_code=500,
        title="Internal Server Error",
        detail=str(exc) if exc else None,
    )


app = create_app()
