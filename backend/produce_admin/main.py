"""Produce admin console API: main entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from produce_admin.config import settings
from produce_admin.core.exceptions import StoreUnavailableError
from produce_admin.core.middleware import RequestLoggingMiddleware
from produce_admin.services.category_client import CategoryAPIClient, build_http_client
from produce_admin.services.category_store import CategoryStore
from produce_admin.services.hierarchy_gateway import HierarchyMutationGateway
from produce_admin.services.tree_view import TreeViewRegistry

logger = structlog.get_logger()


def init_category_state(app: FastAPI, client: CategoryAPIClient) -> None:
    """Wire the shared category store, gateway and view registry onto the app."""
    store = CategoryStore(client)
    app.state.category_client = client
    app.state.category_store = store
    app.state.hierarchy_gateway = HierarchyMutationGateway(client, store)
    app.state.category_views = TreeViewRegistry(store)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    # Startup
    logger.info("Starting produce admin API", env=settings.app_env, marketplace=settings.admin_api_url)
    http = build_http_client(settings)
    init_category_state(app, CategoryAPIClient(http))
    try:
        await app.state.category_store.refresh()
    except StoreUnavailableError:
        # Served empty until the first successful refresh
        logger.warning("initial_category_load_failed")
    yield
    # Shutdown
    logger.info("Shutting down produce admin API")
    await http.aclose()


app = FastAPI(
    title="Produce Admin API",
    description="Category management for the produce-sourcing admin console",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    redirect_slashes=False,
)

# ── Middleware ─────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ── Health Check ──────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check():
    """Liveness probe: always returns healthy if the process is running."""
    return {"status": "healthy", "version": "0.1.0"}


@app.get("/ready", tags=["system"])
async def readiness_check():
    """Readiness probe: checks that the category list has been loaded."""
    store = getattr(app.state, "category_store", None)
    checks = {"categories": "unknown", "api": "ok"}
    if store is None or not store.loaded:
        checks["categories"] = "not loaded"
        return {"status": "degraded", "checks": checks}

    checks["categories"] = f"{len(store.records)} loaded"
    return {"status": "ready", "checks": checks}


# ── API Routes ────────────────────────────────────
from produce_admin.api.v1 import categories, category_views  # noqa: E402

app.include_router(categories.router, prefix="/api/v1/categories", tags=["categories"])
app.include_router(category_views.router, prefix="/api/v1/category-views", tags=["category-views"])
