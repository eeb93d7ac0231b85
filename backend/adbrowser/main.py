"""AD Browser - read-only Active Directory browser backend"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adbrowser.api import directory
from adbrowser.config import settings
from adbrowser.logger import setup_logging

logger = setup_logging(console_output=settings.debug)

app = FastAPI(
    title=settings.app_name,
    description="Read-only browser for Active Directory containers, users, groups and computers",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(directory.router)

logger.info("%s started with '%s' backend", settings.app_name, settings.backend)


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "backend": settings.backend}
