import logging

from fastapi import FastAPI

from app.config import settings
from app.errors import register_error_handlers
from app.onboarding.router import router as onboarding_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="GoalFlow", version="0.1.0")
app.include_router(onboarding_router)
register_error_handlers(app)


@app.get("/")
async def root() -> dict:
    return {
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "onboarding": {
            "catalog": "/onboarding/catalog",
            "status": "/onboarding/{user_id}",
            "intro": "/onboarding/{user_id}/intro",
            "profile": "/onboarding/{user_id}/profile",
            "goals": "/onboarding/{user_id}/goals",
            "pairing": "/onboarding/{user_id}/pairing/{category}",
            "configuration": "/onboarding/{user_id}/configuration/{category}",
            "events": "/onboarding/{user_id}/events",
            "retry": "/onboarding/{user_id}/retry",
            "reopen": "/onboarding/{user_id}/reopen",
            "goal_list": "/onboarding/{user_id}/goals",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
