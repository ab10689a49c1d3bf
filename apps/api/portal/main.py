from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from portal.api.errors import service_error_handler, validation_error_handler
from portal.api.v1.router import router as v1_router
from portal.core.config import settings
from portal.core.logging import configure_logging
from portal.middleware.rate_limit import RateLimitMiddleware
from portal.middleware.request_id import RequestIdMiddleware
from portal.middleware.security_headers import SecurityHeadersMiddleware
from portal.services.exceptions import ServiceError

configure_logging()

app = FastAPI(title="Chapter Portal API")

# Starlette runs the last added middleware first (outermost).
# RequestId and SecurityHeaders wrap everything, CORS answers preflight,
# and the rate limiter sits closest to the routes.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
def root():
    return {"name": "Chapter Portal API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(v1_router, prefix="/v1")
