import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from video_ingest.api.routes_videos import router as videos_router
from video_ingest.core.config import settings, warn_missing_credentials
from video_ingest.core.database import close_mongo_connection, connect_to_mongo

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(title="Video Ingest")

@app.on_event("startup")
async def startup_event():
    warn_missing_credentials()
    await connect_to_mongo()

@app.on_event("shutdown")
async def shutdown_event():
    await close_mongo_connection()

app.include_router(videos_router, prefix="/videos", tags=["videos"])

# Allow CORS (for frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Replace with your frontend URL in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port)
