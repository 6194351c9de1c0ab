from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

# --- ADMIN ROUTES ---
from proofbench.api.v1.admin import courses as admin_courses
from proofbench.api.v1.admin import user as admin_user

# --- SHARED ROUTES ---
from proofbench.api.v1 import auth

# --- USER ROUTES ---
from proofbench.api.v1.user import courses, learning, preferences, profile
from proofbench.core.scheduler import shutdown_scheduler, start_scheduler
from proofbench.core.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):

    # ================================
    # START APSCHEDULER (progress trackers)
    # ================================
    start_scheduler()
    logger.info("🚀 ProofBench API started")

    try:
        yield
    finally:
        shutdown_scheduler()
        logger.info("👋 ProofBench API stopped")


# ===== APP CONFIG =====
app = FastAPI(
    title="ProofBench API",
    description="Courses, video progress and comments",
    version="0.1.0",
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

prefix = "/api/v1"

# ===== REGISTER ROUTERS =====

# --- Share ---
app.include_router(auth.router, prefix=prefix)

# --- USER ROUTES ---
app.include_router(profile.router, prefix=prefix)
app.include_router(preferences.router, prefix=prefix)
app.include_router(courses.router, prefix=prefix)
app.include_router(learning.router, prefix=prefix)

# --- ADMIN ROUTES ---
app.include_router(admin_courses.router, prefix=prefix)
app.include_router(admin_user.router, prefix=prefix)


@app.get("/")
async def root():
    return {"message": "ProofBench API is running"}


if __name__ == "__main__":
    uvicorn.run("proofbench.main:app", host="0.0.0.0", port=8000, reload=True)
