"""Exception handlers for the Storefront API.

Protean's handlers cover ``ValidationError`` (400) and
``ObjectNotFoundError`` (404). Storefront rule violations are conflicts
with the current state of the store and map to 409, as does a write that
lost a concurrent update to the same aggregate.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError
from protean.integrations.fastapi import register_exception_handlers

from storefront.errors import StorefrontError

logger = structlog.get_logger(__name__)


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    logger.warning("Request rejected", path=request.url.path, error=exc.code)
    return JSONResponse(status_code=409, content={"error": exc.code, "messages": exc.messages})


async def version_conflict_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    logger.warning("Concurrent update", path=request.url.path, detail=str(exc))
    return JSONResponse(
        status_code=409,
        content={"error": "concurrent_update", "messages": {"_entity": ["Changed by another request, retry"]}},
    )


def register_storefront_exception_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(ExpectedVersionError, version_conflict_handler)
