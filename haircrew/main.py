import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from . import models  # noqa: F401  (registers tables with Base)
from .config import ALLOWED_ORIGINS, CSRF_ENABLED, SECURITY_HEADERS_ENABLED
from .csrf import CSRF_COOKIE_NAME, CSRFMiddleware, generate_csrf_token, set_csrf_cookie
from .database import Base, engine
from .domain.orders import admin_router as admin_orders_router
from .domain.orders import router as orders_router
from .domain.products import admin_router as admin_products_router
from .domain.products import router as products_router
from .errors import register_exception_handlers
from .routes.account import router as account_router
from .routes.admin_settings import router as admin_settings_router
from .routes.admin_users import router as admin_users_router
from .routes.auth import router as auth_router
from .routes.carousel import router as carousel_router
from .routes.cart import router as cart_router
from .routes.categories import admin_router as admin_categories_router
from .routes.categories import router as categories_router
from .routes.community import admin_router as admin_community_router
from .routes.community import router as community_router
from .routes.dashboard import router as dashboard_router
from .routes.notifications import router as notifications_router
from .routes.reviews import admin_router as admin_reviews_router
from .routes.reviews import router as reviews_router
from .routes.upload import router as upload_router
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    try:
        from .rate_limiter import get_redis_client

        if get_redis_client() is not None:
            logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed - rate limiting will deny requests until it recovers: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="HairCrew API", version="1.0.0", lifespan=lifespan)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

if CSRF_ENABLED:
    app.add_middleware(CSRFMiddleware)
    logger.info("CSRF protection enabled")
else:
    logger.info("CSRF protection disabled")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,  # session and CSRF cookies
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
)

# Routes
api = APIRouter(prefix="/api")
api.include_router(auth_router)
api.include_router(products_router)
api.include_router(reviews_router)
api.include_router(categories_router)
api.include_router(carousel_router)
api.include_router(cart_router)
api.include_router(orders_router)
api.include_router(account_router)
api.include_router(community_router)
api.include_router(admin_products_router)
api.include_router(admin_categories_router)
api.include_router(admin_orders_router)
api.include_router(admin_users_router)
api.include_router(admin_reviews_router)
api.include_router(admin_community_router)
api.include_router(admin_settings_router)
api.include_router(notifications_router)
api.include_router(dashboard_router)
api.include_router(upload_router)
app.include_router(api)


@app.get("/")
def root():
    return {"message": "HairCrew API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/csrf-token")
async def get_csrf_token(request: Request, response: Response):
    """
    Get a CSRF token for the frontend.
    The token is also set as a cookie; send it back in the X-CSRF-Token header.
    """
    existing_token = request.cookies.get(CSRF_COOKIE_NAME)
    if existing_token:
        return {"csrf_token": existing_token}

    new_token = generate_csrf_token()
    set_csrf_cookie(response, new_token)
    return {"csrf_token": new_token}
