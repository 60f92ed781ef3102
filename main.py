import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from starlette.middleware.base import BaseHTTPMiddleware

from config import APP_NAME, APP_VERSION, ENVIRONMENT, LOG_LEVEL, SCHEDULER_ENABLED
from core.errors import install_error_handlers
from core.logging import configure_logging, request_id_var
from routers.admin.api import router as admin_router
from routers.answers.api import router as answers_router
from routers.cron.api import router as cron_router
from routers.daily_challenge.api import router as daily_challenge_router
from routers.games.api import router as games_router
from routers.guest.api import router as guest_router
from routers.issues.api import router as issues_router
from routers.leaderboard.api import router as leaderboard_router
from routers.questions.api import router as questions_router
from routers.users.api import router as users_router

log_level = configure_logging(environment=ENVIRONMENT, log_level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=APP_NAME,
    description="Backend API for Trivrdy - Jeopardy-style games, practice, daily challenges and leaderboards",
    version=APP_VERSION,
    swagger_ui_parameters={
        "docExpansion": "none",
        "displayRequestDuration": True,
        "filter": True,
        "defaultModelsExpandDepth": 2,
        "defaultModelExpandDepth": 2,
    },
)

install_error_handlers(app)


# Add security scheme
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=APP_NAME,
        version=APP_VERSION,
        description="""
        Trivrdy Backend API

        ## Authentication
        Signed-in endpoints take a Descope session JWT.
        Cron endpoints take the cron secret instead.

        Format: `Authorization: Bearer <token>`
        """,
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "bearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    openapi_schema["security"] = [{"bearerAuth": []}]
    app.openapi_schema = openapi_schema
    return openapi_schema


app.openapi = custom_openapi


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        token = request_id_var.set(request_id)
        request.state.request_id = request_id

        start_time = time.time()
        query_str = f"?{request.url.query}" if request.query_params else ""
        logger.info(
            f"REQUEST | id={request_id} | method={request.method} | path={request.url.path}{query_str} | "
            f"ip={request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"ERROR | id={request_id} | method={request.method} | path={request.url.path} | "
                f"error={type(e).__name__}: {e} | time={time.time() - start_time:.3f}s",
                exc_info=True,
            )
            raise
        finally:
            request_id_var.reset(token)

        user_id = getattr(request.state, "user_id", None)
        logger.info(
            f"RESPONSE | id={request_id} | method={request.method} | path={request.url.path} | "
            f"status={response.status_code} | time={time.time() - start_time:.3f}s | "
            f"user_id={user_id or 'anonymous'}"
        )
        response.headers["X-Request-ID"] = request_id
        return response


# Add request logging middleware (before CORS so it logs all requests)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"],
)

app.include_router(users_router)
app.include_router(questions_router)
app.include_router(games_router)
app.include_router(answers_router)
app.include_router(daily_challenge_router)
app.include_router(leaderboard_router)
app.include_router(guest_router)
app.include_router(issues_router)
app.include_router(admin_router)
app.include_router(cron_router)


def scheduler_should_run() -> bool:
    return ENVIRONMENT == "production" or SCHEDULER_ENABLED


@app.on_event("startup")
async def startup_event():
    logger.info(f"{APP_NAME} started | version={APP_VERSION} | environment={ENVIRONMENT}")

    if scheduler_should_run():
        from scheduler import start_scheduler
        start_scheduler()
    else:
        logger.info("Scheduler disabled - relying on external cron calls")


@app.on_event("shutdown")
async def shutdown_event():
    if scheduler_should_run():
        from scheduler import stop_scheduler
        stop_scheduler()


@app.get("/")
async def read_root():
    """
    Root endpoint to check if the server is running.
    Returns basic API information.
    """
    return {
        "status": "online",
        "message": f"Welcome to {APP_NAME}!",
        "version": APP_VERSION,
        "environment": ENVIRONMENT,
    }


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.
    """
    return {"status": "healthy"}
