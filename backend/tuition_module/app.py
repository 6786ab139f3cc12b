import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import init_tuition_module
from .config import settings
from .database import init_database


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()
    logger.info("Tuition API started")
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Tuition Manager API",
        description="Tutor and parent access to students, homework, exams, attendance, fees and performance",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    init_tuition_module(app)

    @app.get("/api/health")
    def health():
        return {"status": "ok", "database": settings.database_url.split(":", 1)[0]}

    return app


app = create_app()
