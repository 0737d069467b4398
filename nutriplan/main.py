import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nutriplan.core.config import get_settings
from nutriplan.core.errors import NutriPlanError, PersistenceFailure
from nutriplan.routers import (
    admin,
    auth,
    feedback,
    insights,
    meal_plans,
    nutritionist,
    pantry,
    progress,
    public,
    suggestions,
)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="NutriPlan API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NutriPlanError)
async def nutriplan_error_handler(request: Request, exc: NutriPlanError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    content = {"detail": exc.message}
    if isinstance(exc, PersistenceFailure) and exc.partial:
        content["partial"] = True
        content["feedback_id"] = exc.feedback_id
    return JSONResponse(status_code=exc.status_code, content=content)


app.include_router(auth.router)
app.include_router(public.router)
app.include_router(feedback.router)
app.include_router(progress.router)
app.include_router(pantry.router)
app.include_router(meal_plans.router)
app.include_router(suggestions.router)
app.include_router(insights.router)
app.include_router(nutritionist.router)
app.include_router(admin.router)


@app.get("/")
def read_root():
    return {"message": "Welcome to NutriPlan"}
