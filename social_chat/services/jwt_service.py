import os
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from pydantic import BaseModel
from dotenv import load_dotenv

# Tải các biến môi trường từ tệp .env
load_dotenv()

# Lấy các giá trị cấu hình JWT từ các biến môi trường
SECRET_KEY = os.getenv("SECRET_KEY")  # Khóa bí mật để ký và xác minh token
ALGORITHM = os.getenv("ALGORITHM", "HS256")    # Thuật toán mã hóa để sử dụng
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 120))  # Thời gian hết hạn của token truy cập (tính bằng phút)
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", 30)) # Thời gian hết hạn của refresh token (tính bằng ngày)

class TokenData(BaseModel):
    """Mô hình dữ liệu cho payload được giải mã từ token."""
    userId: Optional[str] = None
    tokenType: Optional[str] = None

def _encode(data: dict, token_type: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": datetime.utcnow() + expires_delta, "type": token_type})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Tạo một token truy cập JWT mới.

    Args:
        data (dict): Dữ liệu (payload) để mã hóa vào token, `sub` là ID người dùng.
        expires_delta (Optional[timedelta]): Thời gian tồn tại của token.

    Returns:
        str: Token JWT đã được mã hóa.
    """
    return _encode(data, "access", expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))

def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Tạo một refresh token JWT mới.
    """
    return _encode(data, "refresh", expires_delta or timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS))

def decode_token(token: str, expected_type: str = "access") -> Optional[TokenData]:
    """
    Giải mã một token JWT và trả về payload của nó.

    Trả về None nếu token hết hạn, sai chữ ký hoặc không đúng loại
    (refresh token không được dùng thay access token và ngược lại).
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None

    user_id = payload.get("sub") # Trích xuất chủ thể (ID người dùng)
    token_type = payload.get("type")
    if user_id is None or token_type != expected_type:
        return None
    return TokenData(userId=user_id, tokenType=token_type)

def decode_access_token(token: str) -> Optional[TokenData]:
    return decode_token(token, expected_type="access")
