import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.cache import cache_client
from .core.config import BACKEND_PORT, CORS_ORIGINS, LOG_LEVEL, SEED_SAMPLE_DATA
from .core.errors import StoreError
from .db import SessionLocal, init_db
from .middleware import RateLimitMiddleware
from .routes import auth, blogs, cart, games, orders, reviews, support, wishlist
from .seed import seed_admin, seed_games

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="GameBazaar API", version="0.1.0")


def _error_response(status_code: int, message: str, errors=None) -> JSONResponse:
    content = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return _error_response(exc.status_code, exc.message, exc.errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = _error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid value")
        errors.append(f"{location}: {message}" if location else message)
    return _error_response(400, "Validation Error", errors)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(500, str(exc) or "Server Error")


# Added last runs first: CORS wraps the rate limiter, so 429s carry CORS headers.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    cache_client.connect()

    if SEED_SAMPLE_DATA:
        db = SessionLocal()
        try:
            seed_games(db)
            seed_admin(db)
        finally:
            db.close()


@app.on_event("shutdown")
def on_shutdown() -> None:
    cache_client.disconnect()


@app.get("/health")
def health_check():
    return {"success": True, "status": "ok"}


@app.head("/health")
def health_check_head():
    return Response(status_code=200)


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(games.router, prefix="/api/games", tags=["games"])
app.include_router(cart.router, prefix="/api/cart", tags=["cart"])
app.include_router(wishlist.router, prefix="/api/wishlist", tags=["wishlist"])
app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
app.include_router(reviews.router, prefix="/api/reviews", tags=["reviews"])
app.include_router(blogs.router, prefix="/api/blogs", tags=["blogs"])
app.include_router(support.router, prefix="/api/support", tags=["support"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("gamebazaar.main:app", host="0.0.0.0", port=BACKEND_PORT)
