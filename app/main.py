import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api import kitchen
from app.config import settings, validate_credentials
from app.services.file_service import PREVIEW_URL_PREFIX, file_service

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Missing API keys are fatal at startup, not on first use
    validate_credentials(settings)
    logger.info(
        "Fridge Chef starting (recipe model %s, speech model %s)",
        settings.recipe_model,
        settings.speech_model,
    )
    yield


app = FastAPI(title="Fridge Chef", version="0.1.0", lifespan=lifespan)

# Preview images written by FileService
app.mount(
    PREVIEW_URL_PREFIX,
    StaticFiles(directory=file_service.upload_dir),
    name="uploads",
)

app.include_router(kitchen.router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
