import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from social_chat.routers import (
    auth_router,
    user_router,
    friend_request_router,
    one_on_one_chat_router,
    group_chat_router,
    message_router
)
from social_chat.models import init_db
from social_chat.configs import init_cloudinary, settings
from social_chat.exceptions import AppError
from social_chat.utils import error_response

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

#Khởi tạo kết nối đến Cloudinary
init_cloudinary()

# Khởi tạo app FastAPI với thông tin Swagger UI
app = FastAPI(
    title="Social Chat",
    description="Backend mạng xã hội: tài khoản, kết bạn, trò chuyện riêng, "
                "nhóm trò chuyện và tin nhắn.",
    version="1.0.0"
)

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=error_response(exc.message))

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(str(exc.detail)),
        headers=getattr(exc, "headers", None)
    )

# Exception handler cho RequestValidationError (Pydantic validation)
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Format lỗi validation cho user-friendly
    error_messages = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        message = error.get("msg", "Validation error")
        error_messages.append(f"{field}: {message}")

    detail = "; ".join(error_messages) if error_messages else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response(f"Validation failed: {detail}")
    )

@app.exception_handler(DuplicateKeyError)
async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    logger.warning("Duplicate key on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=error_response("Resource already exists"))

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = "Internal Server Error"
    if settings.APP_ENV == "development":
        message = f"{message}: {type(exc).__name__}"
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=error_response(message))

# Kết nối với cơ sở dữ liệu khi khởi động
@app.on_event("startup")
async def startup_db_client():
    await init_db()

# Gắn các router
app.include_router(auth_router.router, prefix="/api/v1/auth", tags=["Xác thực"])
app.include_router(user_router.router, prefix="/api/v1/users", tags=["Người dùng"])
app.include_router(friend_request_router.router, prefix="/api/v1/friend-requests", tags=["Lời mời kết bạn"])
app.include_router(one_on_one_chat_router.router, prefix="/api/v1/one-on-one-chats", tags=["Trò chuyện riêng"])
app.include_router(group_chat_router.router, prefix="/api/v1/group-chats", tags=["Nhóm trò chuyện"])
app.include_router(message_router.router, prefix="/api/v1/messages", tags=["Tin nhắn"])

@app.get("/")
def read_root():
    return {"message": "Máy chủ đang chạy"}
