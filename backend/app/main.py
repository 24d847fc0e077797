import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import recipe_import
from config import CORS_ALLOW_ORIGINS, LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="CookIterate API")

# Allow multiple origins for local dev and Docker
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(recipe_import.router)

# Root endpoint
@app.get("/")
def root():
    return {
        "message": "Welcome to CookIterate API",
        "docs": "/docs",
        "redoc": "/redoc"
    }

# Health check endpoint
@app.get("/health")
def health_check():
    return {"status": "healthy", "message": "API is running"}
