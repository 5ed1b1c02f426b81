import logging
import traceback
import os

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

DEBUG = os.getenv("DEBUG", "").lower() in {"1", "true", "yes"}

app = FastAPI(title="Quote catalog API")


@app.middleware("http")
async def log_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as e:
        logging.error("🔥 Error while handling %s %s", request.method, request.url.path, exc_info=True)
        if DEBUG:
            content = f"Error: {str(e)}\n\n{traceback.format_exc()}"
        else:
            content = "Internal server error"
        return PlainTextResponse(content=content, status_code=500)


@app.get("/favicon.ico", include_in_schema=False)
async def favicon() -> Response:
    return Response(status_code=204)


from .routes.products import router as products_router
from .routes.subscriptions import router as subscriptions_router

app.include_router(products_router)
app.include_router(subscriptions_router)
