import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from core.config import settings  # noqa: E402
from core.database import create_db_and_tables  # noqa: E402
from core.errors import register_error_handlers  # noqa: E402
from routes.admin import router as admin_router  # noqa: E402
from routes.home import router as home_router  # noqa: E402
from routes.invitation import router as invitation_router  # noqa: E402
from routes.projects import router as project_router  # noqa: E402
from routes.tasks import router as tasks_router  # noqa: E402
from routes.workspaces import router as workspaces_router  # noqa: E402

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# =========================================
# 🏁 Lifespan (DB initialization)
# =========================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("✅ Database tables created on startup.")
    yield
    logger.info("✅ Application shutting down.")


# =========================================
#  ✅ FastAPI App
# =========================================
app = FastAPI(lifespan=lifespan, title="ProgPath Backend", debug=settings.DEBUG)

allowed_origins = [
    settings.FRONTEND_URL,
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


# =========================================
# 📦 Routers
# =========================================
app.include_router(workspaces_router, prefix="/workspaces", tags=["Workspaces"])
app.include_router(project_router, prefix="/workspaces", tags=["Projects"])
app.include_router(tasks_router, prefix="/workspaces", tags=["Tasks"])
app.include_router(invitation_router)
app.include_router(home_router)
app.include_router(admin_router, prefix="/admin", tags=["Admin"])


# =========================================
# 🩺 Health Check
# =========================================
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "Backend is running"}


@app.get("/")
def read_root():
    return {"message": "Welcome to ProgPath Backend!"}


def run() -> None:
    """Serve the API with uvicorn (`progpath-api` console script)."""
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG and not settings.IS_PRODUCTION,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
