import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.api.v1 import auth, folder, images, trash
from app.core.config import settings
from app.core.database import Base, SessionLocal, engine
from app.core.exceptions import AppError
from app.models import folder as folder_model, image, token, user  # noqa: F401  (register tables)
from app.services.object_store import get_object_store
from app.services.trash_sweeper import TrashSweeper

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def _create_tables() -> None:
    # Wait for database to be ready and create tables
    max_retries = 30
    retry_count = 0

    while retry_count < max_retries:
        try:
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created successfully")
            break
        except Exception as e:
            retry_count += 1
            logger.warning(
                f"Database connection attempt {retry_count} failed: {str(e)}"
            )
            if retry_count >= max_retries:
                logger.error("Max retries reached. Could not connect to database.")
                raise e
            await asyncio.sleep(2)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await _create_tables()

    sweeper = None
    if settings.trash_sweep_enabled:
        sweeper = TrashSweeper(
            SessionLocal,
            get_object_store(),
            retention_days=settings.trash_retention_days,
            interval_seconds=settings.trash_sweep_interval_seconds,
        )
        sweeper.start()
    else:
        logger.info("Trash sweeper disabled")

    try:
        yield
    finally:
        if sweeper is not None:
            await sweeper.stop()


app = FastAPI(title="Image Folder API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include routers
app.include_router(auth.router, prefix="/api/v1/auth", tags=["authentication"])
app.include_router(folder.router, prefix="/api/v1/folders", tags=["folders"])
app.include_router(images.router, prefix="/api/v1/images", tags=["images"])
app.include_router(trash.router, prefix="/api/v1/trash", tags=["trash"])

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_url or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def read_root():
    return {"message": "Image Folder API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"Database unhealthy: {str(e)}")
