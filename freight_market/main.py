from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from freight_market.db import Base, engine
from freight_market.api.api_v1.api import api_router
import freight_market.models  # noqa: F401  (registra las tablas en Base.metadata)
from freight_market.core.config import settings
from freight_market.core.errors import DomainError
from freight_market.core.logging import get_logger, setup_logging
from freight_market.schemas.common import ErrorResponse

logger = get_logger(module="main")

app = FastAPI(title=settings.PROJECT_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.on_event("startup")
def on_startup():
    setup_logging()
    # Crea las tablas si no existen (y el fichero sqlite)
    Base.metadata.create_all(bind=engine)
    logger.info("API arrancada", database=engine.url.render_as_string(hide_password=True))


# ---------- errores → {"success": false, "error": ...} ----------

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.warning(
        "Operación rechazada",
        path=request.url.path,
        error=type(exc).__name__,
        message=exc.message,
    )
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"][1:])
        messages.append(f"{field}: {err['msg']}" if field else err["msg"])
    return _error(status.HTTP_400_BAD_REQUEST, "; ".join(messages))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    # La traza va al log, nunca a la respuesta
    logger.opt(exception=exc).error("Error no controlado", path=request.url.path)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Error")


@app.get("/", tags=["health"])
def read_root():
    return {"message": "ok"}
