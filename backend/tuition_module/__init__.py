import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .errors import AccessError, Forbidden, Unauthenticated
from .routes import router


logger = logging.getLogger(__name__)


async def access_error_handler(request: Request, exc: AccessError) -> JSONResponse:
    message = f"{request.method} {request.url.path} rejected with {exc.status_code}: {exc.reason}"
    if isinstance(exc, (Forbidden, Unauthenticated)):
        logger.warning(message)
    else:
        logger.info(message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.reason})


def init_tuition_module(app: FastAPI) -> None:
    app.add_exception_handler(AccessError, access_error_handler)
    app.include_router(router)


__all__ = ["router", "init_tuition_module"]
