from contextlib import asynccontextmanager

from fastapi import FastAPI

from app import redis_client
from app.config import settings
from app.redis_client import close_pool
from app.routes.admin_api import router as admin_router
from app.routes.public_api import router as public_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_pool()


app = FastAPI(title=settings.event_name, lifespan=lifespan)

app.include_router(admin_router)
app.include_router(public_router)


@app.get("/api/health")
async def health_check():
    redis_ok = await redis_client.ping()
    return {"status": "ok" if redis_ok else "degraded", "redis": redis_ok}
