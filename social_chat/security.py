import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from .services import jwt_service
from .services.user_service import UserService

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

credentials_exception = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)

async def get_user_id_from_token(token: str) -> str:
    """
    Giải mã access token và trả về ID của người dùng đang hoạt động.
    Token hỏng, hết hạn hoặc thuộc về tài khoản đã xóa đều bị từ chối.
    """
    token_data = jwt_service.decode_access_token(token)
    if not token_data or not token_data.userId:
        logger.warning("Token decode failed or missing subject")
        raise credentials_exception

    user = await UserService.get_active_user(token_data.userId)
    if user is None:
        logger.warning("Active user not found for token subject %s", token_data.userId)
        raise credentials_exception

    return str(user.id)

async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    return await get_user_id_from_token(token)
