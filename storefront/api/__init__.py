"""
Storefront API application.

Usage:
    uvicorn storefront.api:app
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from storefront import __version__
from storefront.errors import ERROR_INVALID_REQUEST

from .cart import error_response, router as cart_router


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return ERROR_INVALID_REQUEST
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", ERROR_INVALID_REQUEST)
    return f"{field}: {message}" if field else message


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Cart API",
        description="Cart Data Service",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(_first_validation_message(exc))

    @app.middleware("http")
    async def no_store_cart_responses(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api/cart"):
            response.headers["Cache-Control"] = "no-store"
        return response

    app.include_router(cart_router, prefix="/api")

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "ok", "service": "storefront-cart"}

    return app


app = create_app()
