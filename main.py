from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from breathpacer.config import settings
from breathpacer.routes import regime_routes, session_routes
from breathpacer.logger import get_logger

logger = get_logger(__name__)

app = FastAPI(title="Breath Pacer")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Regime compilation/upload and the playback session routes
app.include_router(regime_routes.router)
app.include_router(session_routes.router)

@app.get("/health")
def health():
    return {"status": "ok"}
