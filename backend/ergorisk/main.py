# FastAPI application entry point

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ergorisk import config
from ergorisk.routers import assessment

logging.basicConfig(level=config.LOG_LEVEL, format="%(levelname)s | %(name)s | %(message)s")

app = FastAPI(
    title="Ergonomic Risk Assessment",
    version="1.0.0",
    description="Post pose keypoints (or an image) → get RULA/REBA posture scores, load estimate, and weight-adjusted risk.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(assessment.router, prefix="/api", tags=["assessment"])


@app.get("/api/health")
async def health():
    return {"status": "ok"}
