# src/gymledger/main.py

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from gymledger.core.config import settings
from gymledger.api.router import router
from gymledger.db.session import engine
from gymledger.services.auditing.audit_emitter import LoggingAuditEmitter
from gymledger.services.exceptions import (
    ServiceException, NotFoundError, AlreadyActiveError, ValidationError,
    PartialFailureError, BackendUnavailableError
)
from gymledger.schemas.common import JsonFaildResponse

logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # one emitter per process, shared by every request context
    app.state.audit_emitter = LoggingAuditEmitter()
    logger.info(f"gymledger starting ({settings.APP_ENV}).")

    yield

    logger.info("Disposing database engine...")
    await engine.dispose()

app = FastAPI(
    title="gymledger",
    lifespan=lifespan
)

#设置允许访问的域名
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"])

app.include_router(router)

def _error_response(status_code: int, msg: str, data=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=JsonFaildResponse(status=status_code, msg=msg, data=data).model_dump(),
    )

@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError):
    return _error_response(status.HTTP_404_NOT_FOUND, exc.message)

@app.exception_handler(AlreadyActiveError)
async def already_active_exception_handler(request: Request, exc: AlreadyActiveError):
    return _error_response(status.HTTP_409_CONFLICT, exc.message)

@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc.message)

@app.exception_handler(PartialFailureError)
async def partial_failure_exception_handler(request: Request, exc: PartialFailureError):
    """
    A multi-step write stopped half way. The context is returned so an
    operator can repair the member by hand.
    """
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message,
        data={"member_id": exc.member_id, "step": exc.step},
    )

@app.exception_handler(BackendUnavailableError)
async def backend_unavailable_exception_handler(request: Request, exc: BackendUnavailableError):
    logger.error(f"Backend unavailable on {request.method} {request.url.path}: {exc.message}")
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc.message)

@app.exception_handler(ServiceException)
async def service_exception_handler(request: Request, exc: ServiceException):
    # 处理所有来自服务层的、可预期的业务逻辑错误
    logger.warning(f"Service error on {request.method} {request.url.path}: {exc.message}")
    return _error_response(status.HTTP_400_BAD_REQUEST, exc.message)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # 重写 FastAPI 默认的 HTTPException 处理器，以匹配我们的响应格式
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": exc.status_code, "msg": exc.detail, "data": None},
        headers=exc.headers,
    )

@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error_response(500, "Internal Server Error")
