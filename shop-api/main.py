"""
Luxury Shop API Application Entry
"""
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone

# Import unified API routes
from api.routes import api_v1_router
from api.health import uptime_seconds
from api.middleware import add_error_handlers, add_logging_middleware

# Data layer
from data import initialize_data_layer, cleanup_data_layer

# Configuration and utilities
from configs.settings import settings
from utils.logger import setup_logging, get_logger


setup_logging()
logger = get_logger(__name__)

LEGACY_PATHS = ("products", "categories")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    logger.info("Starting Luxury Shop API")
    logger.info(f"Debug Mode: {settings.debug}")
    logger.info(f"Log Level: {settings.log_level}")
    try:
        logger.info("Initializing data layer...")
        data_success = await initialize_data_layer()
        if not data_success:
            raise RuntimeError("Failed to initialize data layer")
        logger.info("Data layer initialized successfully")
        yield

    except Exception as e:
        logger.error("Failed to initialize Luxury Shop API", error=str(e))
        raise
    finally:
        logger.info("Shutting down Luxury Shop API...")
        try:
            await cleanup_data_layer()
            logger.info("Data layer cleanup completed")
        except Exception as e:
            logger.error("Error during data layer cleanup", error=str(e))

        logger.info("Luxury Shop API shutdown completed")

def create_app() -> FastAPI:
    """Create FastAPI application"""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="REST API for a luxury fashion store: catalog, customers and orders",
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Add middleware (order is important)
    add_error_handlers(app)
    add_logging_middleware(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_v1_router, prefix=settings.api_prefix)

    if settings.debug:
        logger.info("=== Registered Routes ===")
        for route in app.routes:
            if hasattr(route, 'methods') and hasattr(route, 'path'):
                methods = list(route.methods)
                logger.info(f"  {methods} -> {route.path}")
        logger.info("========================")

    @app.get("/", tags=["root"])
    async def root():
        """Root path - Service information"""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "status": "running",
            "docs_url": "/docs" if settings.debug else "disabled",
            "api_prefix": settings.api_prefix,
        }

    @app.get("/health", tags=["root"])
    async def health():
        return {
            "status": "up",
            "uptime": uptime_seconds(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def legacy_redirect(name: str):
        async def redirect():
            location = f"{settings.api_prefix}/{name}"
            return JSONResponse(
                status_code=301,
                headers={"Location": location},
                content={
                    "success": False,
                    "message": f"This endpoint has moved to {location}",
                    "redirect": location,
                },
            )
        return redirect

    for name in LEGACY_PATHS:
        app.add_api_route(f"/{name}", legacy_redirect(name), methods=["GET"],
                          include_in_schema=False)

    return app

# Create application instance
app = create_app()

if __name__ == "__main__":
    uvicorn_config = {
        "app": "main:app",
        "host": settings.host,
        "port": settings.port,
        "reload": settings.debug,
        "log_level": settings.log_level.lower(),
        "access_log": True,
        "use_colors": True,
    }

    if not settings.debug:
        uvicorn_config.update({
            "workers": 1,
            "reload": False,
            "access_log": False,
        })

    logger.info("Starting Luxury Shop API server...")
    logger.info(f"Server will be available at: http://{settings.host}:{settings.port}")
    logger.info(f"API documentation: http://{settings.host}:{settings.port}/docs")

    uvicorn.run(**uvicorn_config)
