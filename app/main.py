from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api.v1.analysis import router as analysis_router
from app.api.v1.health import router as health_router
from app.core.logging_config import configure_logging
from app.core.rate_limit import limiter

configure_logging()

app = FastAPI(title="ATS Resume Analysis API", version="0.1.0")

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(analysis_router, prefix="/v1", tags=["ATS Analysis"])
