import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from menusync.core.config import settings
from menusync.api.v1.api import router as api_v1_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Menu Sync API", version="0.1.0")

# set up CORS so the admin frontend can talk to us
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# mount our API routes
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
def health():
    return {"status": "ok", "env": settings.APP_ENV, "platform": settings.PLATFORM_PROVIDER}
