"""Shared error handling and CORS setup for the endpoint applications."""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

ALLOWED_METHODS = ["POST", "OPTIONS"]


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 with the failing fields."""
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "detail": jsonable_encoder(exc.errors())},
    )


def install_endpoint_defaults(app: FastAPI):
    """Allow browser access from any origin and return 400 on bad input."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=ALLOWED_METHODS,
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


def preflight_response() -> Response:
    """Answer a bare OPTIONS request that is not a CORS preflight."""
    return Response(status_code=204, headers={"Allow": ", ".join(ALLOWED_METHODS)})
