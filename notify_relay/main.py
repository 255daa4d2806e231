from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from notify_relay import __version__
from notify_relay.api.routes import callables, events
from notify_relay.core.exceptions import callable_exception_handler, global_exception_handler, http_exception_handler, request_validation_exception_handler
from notify_relay.core.lifespan import lifespan
from notify_relay.core.middleware import RequestLoggingMiddleware
from notify_relay.notifications.contracts import CallableError

app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(CallableError, callable_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": __version__}


app.include_router(callables.router, prefix="/callable", tags=["callable"])
app.include_router(events.router, prefix="/events", tags=["events"])
