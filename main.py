import logging
from contextlib import AsyncExitStack

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mongoengine.errors import OperationError, ValidationError
from pymongo.errors import PyMongoError
from redis.exceptions import RedisError

from app.connections import mongo_lifespan, redis_lifespan
from app.api.auth import router as auth_router
from app.api.user import router as user_router
from app.api.product import router as product_router
from app.api.review import router as review_router
from app.api.coupon import router as coupon_router
from app.api.payment import router as payment_router
from app.api.admin import router as admin_router
from app.services.scheduler import schedule_vote_reconciliation
from app.utils.config import settings
from app.utils.errors import AppError, InvalidInput, StorageError


logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def combined_lifespan(app: FastAPI):
    async with AsyncExitStack() as stack:
        await stack.enter_async_context(mongo_lifespan(app))
        await stack.enter_async_context(redis_lifespan(app))

        try:
            schedule_vote_reconciliation()
        except RedisError as exc:
            logger.warning("Unable to schedule vote reconciliation: %s", exc)

        yield


app = FastAPI(title="Product Hunt API", version="0.1.0", lifespan=combined_lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    content = InvalidInput("Request validation failed").to_dict()
    content["errors"] = jsonable_encoder(exc.errors())
    return JSONResponse(status_code=422, content=content)


@app.exception_handler(ValidationError)
async def document_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content=InvalidInput(str(exc)).to_dict())


@app.exception_handler(OperationError)
@app.exception_handler(PyMongoError)
async def storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content=StorageError().to_dict())


@app.exception_handler(RedisError)
async def redis_error_handler(request: Request, exc: RedisError) -> JSONResponse:
    logger.error("Redis failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content=StorageError().to_dict())


app.include_router(auth_router, prefix="/api/auth")
app.include_router(user_router, prefix="/api/users")
app.include_router(product_router, prefix="/api/products")
app.include_router(review_router, prefix="/api/reviews")
app.include_router(coupon_router, prefix="/api/coupons")
app.include_router(payment_router, prefix="/api/payments")
app.include_router(admin_router, prefix="/api/admin")


@app.get("/")
def read_root() -> dict:
    return {"message": f"{settings.app_name} API running"}
