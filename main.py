import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

# Import routers
from topup.api.routes import auth, products, transactions, referrals, admin, digiflazz
from topup.core import config
from topup.core.exceptions import TopupError
from topup.core.logger import configure_logging
from topup.db.get_db import init_db
from topup.gateways.digiflazz import get_gateway
from topup.utils.error_codes import HTTP_STATUS_TO_ERROR_CODE
from topup.utils.helpers import error_response

configure_logging()
logger = logging.getLogger("topup")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.AUTO_CREATE_TABLES:
        init_db()
    logger.info("Top-up API started (env=%s, mock provider=%s)", config.APP_ENV, config.USE_MOCK_DIGIFLAZZ)
    yield


app = FastAPI(
    title="Top-up API",
    description="FastAPI backend for digital top-up products and referral commissions",
    version="1.0.0",
    lifespan=lifespan
)

# Provider gateway is built once and shared by every request
app.state.gateway = get_gateway(config.load_provider_settings())

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",                          # development
        "http://localhost:5173",                          # development
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API_PREFIX = "/api/v1"


# Root route
@app.get("/")
def root():
    return {"success": True, "message": "Welcome to the Top-up backend API!", "data": None}


@app.get("/health")
def healthcheck():
    return {"success": True, "message": "ok", "data": {"status": "ok"}}


# Include routers
app.include_router(auth.router, prefix=f"{API_PREFIX}/auth", tags=["Auth"])
app.include_router(products.router, prefix=f"{API_PREFIX}/products", tags=["Products"])
app.include_router(transactions.router, prefix=f"{API_PREFIX}/transactions", tags=["Transactions"])
app.include_router(referrals.router, prefix=f"{API_PREFIX}/referrals", tags=["Referrals"])
app.include_router(admin.router, prefix=f"{API_PREFIX}/admin", tags=["Admin"])
app.include_router(digiflazz.router, prefix=f"{API_PREFIX}/digiflazz", tags=["Digiflazz"])


@app.exception_handler(TopupError)
async def topup_exception_handler(request: Request, exc: TopupError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message, exc.details)
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    error_code = HTTP_STATUS_TO_ERROR_CODE.get(exc.status_code, "SERVER_ERROR")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(error_code, exc.detail)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=error_response(
            HTTP_STATUS_TO_ERROR_CODE.get(422, "VALIDATION_ERROR"),
            "Invalid request: Please send the correct content type and required fields.",
            jsonable_encoder(exc.errors())
        )
    )
