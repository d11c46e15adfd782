from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from domain.errors import MalformedSelectionResponse, ServiceFailure

logger = logging.getLogger(__name__)

def attach_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceFailure)
    async def _service_failure(request: Request, exc: ServiceFailure):
        logger.error("Generative service failed: %s (cause: %r)", exc, exc.__cause__)
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(MalformedSelectionResponse)
    async def _malformed_selection(request: Request, exc: MalformedSelectionResponse):
        logger.warning("Unusable skill selection response: %s", exc)
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
