from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from api.engine import shutdown_engine
from api.routers import admin, ingredients
from core.app_logging import configure_logging

configure_logging(config.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    shutdown_engine()


app = FastAPI(
    title="LabelCheck Ingredient Compliance API",
    description="Allergen, GRAS and NDI/ODI checks for label ingredient lists",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS for frontend - allow all origins for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using wildcard origins
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(ingredients.router)
app.include_router(admin.router)


@app.get("/")
async def root():
    return {"message": "LabelCheck API is running", "docs": "/docs"}


@app.get("/api/health")
async def health():
    return {"status": "healthy"}
