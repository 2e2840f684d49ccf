# File: civic_dispatch/main.py
# Project: civic-dispatch

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler

from civic_dispatch.core.config import cors_origins_list
from civic_dispatch.core.deps import viewers
from civic_dispatch.core.ratelimit import limiter
from civic_dispatch.db.session import init_db
from civic_dispatch.routers import auth, issues, issues_stats, authorities, dashboard, public, citizens

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Civic dispatch API ready")
    yield
    viewers.clear()

app = FastAPI(title="Civic Dispatch API", lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins_list(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
def health():
    return {"ok": True}

app.include_router(auth.router)
app.include_router(issues_stats.router)
app.include_router(issues.router)
app.include_router(authorities.router)
app.include_router(dashboard.router)
app.include_router(public.router)
app.include_router(citizens.router)
