import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bracketeer import __version__
from bracketeer.config import LOG_LEVEL
from bracketeer.database import init_db
from bracketeer.routes import brackets, runtime, tournaments

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Bracketeer API", version=__version__)

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(brackets.router, prefix="/api", tags=["brackets"])
# Results, submissions, overrides, forfeit sweeps
app.include_router(runtime.router, prefix="/api", tags=["runtime"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("Bracketeer API %s started with %s routes", __version__, len(app.routes))


@app.get("/api/health")
def health_check():
    return {"app_name": "Bracketeer API", "version": __version__, "status": "healthy"}
