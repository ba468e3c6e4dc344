from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from redis_store import redis_health
from router import router

SERVICE_NAME = "EquiliSolve Engine API"

app = FastAPI(title=SERVICE_NAME, version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
def root() -> Dict[str, Any]:
    return {"ok": True, "service": SERVICE_NAME}


@app.get("/health")
def health() -> Dict[str, Any]:
    return {
        "ok": True,
        "env": config.ENV,
        "tutor_enabled": config.AI_TUTOR_ENABLED,
        "redis": redis_health(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=config.HOST, port=config.PORT, workers=config.UVICORN_WORKERS)
