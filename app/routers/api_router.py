from fastapi import APIRouter
from app.routers import ai, auth, fs, kv, resume

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(fs.router, tags=["Files"])
api_router.include_router(kv.router, tags=["Key-Value"])
api_router.include_router(ai.router, tags=["AI"])
api_router.include_router(resume.router, tags=["Resumes"])
