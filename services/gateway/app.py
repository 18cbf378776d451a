"""LinguaFabric API gateway.

Mounts every service router on one FastAPI app, attaches the tracing
middleware, CORS for the browser client, and the error-taxonomy handlers.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from packages.common.config import get_settings
from packages.common.http import install_error_handlers
from packages.common.tracing import trace_middleware
from services.activity.routes import router as activity_router
from services.auth.routes import router as auth_router
from services.community.routes import router as friends_router
from services.content.routes import router as content_router
from services.dictionary.routes import router as dictionary_router
from services.languages.routes import router as languages_router
from services.users.routes import router as users_router

s = get_settings()

app = FastAPI(title="LinguaFabric API", version="1.0.0")
app.middleware("http")(trace_middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in s.FRONTEND_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
install_error_handlers(app)

for router in (
    auth_router,
    users_router,
    languages_router,
    dictionary_router,
    content_router,
    activity_router,
    friends_router,
):
    app.include_router(router)


@app.get("/healthz", tags=["health"])
def healthz() -> dict:
    return {"ok": True, "service": s.SERVICE_NAME, "env": s.ENV}
