# Run from project root: uvicorn app.main:app --reload

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.handlers import RateLimitHTTPException
from app.api.routes import router

logging.basicConfig(level=logging.INFO)


app = FastAPI(title="Gemini Search Backend")
app.include_router(router)


@app.exception_handler(StarletteHTTPException)
async def message_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Error bodies are {"message": ...} (plus retryAfterSeconds on 429)."""
    content: dict = {"message": exc.detail}
    if isinstance(exc, RateLimitHTTPException) and exc.retry_after_seconds is not None:
        content["retryAfterSeconds"] = exc.retry_after_seconds
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


if __name__ == "__main__":
    print("Gemini search backend booting...")
