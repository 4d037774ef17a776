from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sellfast.api.router import router as api_router
from sellfast.core.db import engine
from sellfast.core.log import setup_logging
from sellfast.core.telemetry import setup_telemetry

setup_logging()

app = FastAPI(title="SellFast API", version="0.1.0")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # The web and widget clients read {"error": "..."}
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())})


setup_telemetry(app, engine)
app.include_router(api_router)
