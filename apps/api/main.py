"""
AI Blueprint Generator - FastAPI Backend
Main application entry point with health check and API routing.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from config import settings, validate_security_settings
from database import engine, Base
import models  # noqa: F401
from routers import (
    health,
    generate,
    blueprints,
    share,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting AI Blueprint Generator API...")
    validate_security_settings()
    if not settings.OPENAI_API_KEY:
        print("⚠️ OPENAI_API_KEY is not configured; generation requests will fail.")
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            print("🗄️ Database schema verified.")
        except Exception as e:
            print(f"⚠️ Database bootstrap skipped: {e}")
    yield
    # Shutdown
    await engine.dispose()
    print("👋 Shutting down API...")


app = FastAPI(
    title="AI Blueprint Generator API",
    description="Turn a project idea into a feature roadmap, tech stack, database schema and development plan",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(generate.router, tags=["Generate"])
app.include_router(blueprints.router, prefix="/blueprints", tags=["Blueprints"])
app.include_router(share.router, prefix="/share", tags=["Share"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "AI Blueprint Generator API",
        "version": "0.1.0",
        "status": "running"
    }
