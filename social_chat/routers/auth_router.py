from fastapi import APIRouter, Form, File, UploadFile
from pydantic import EmailStr
from typing import Optional
from ..services import AuthService
from ..schemas import UserLogin, RefreshTokenRequest
from ..utils import map_user_to_public_dict, success_response

router = APIRouter(tags=["Auth"])

@router.post("/register", status_code=201)
async def register_user(
    email: EmailStr = Form(...),
    password: str = Form(..., min_length=8),
    name: str = Form(..., min_length=1),
    bio: Optional[str] = Form(None),
    profilePicture: Optional[UploadFile] = File(None)
):
    """
    Endpoint để đăng ký người dùng mới (multipart/form-data).
    - Ảnh đại diện là tùy chọn, được upload lên Cloudinary.
    - Trả về hồ sơ công khai của người dùng mới.
    - Email đã tồn tại trả về 409.
    """
    new_user = await AuthService.register_user(
        email=email,
        password=password,
        name=name,
        bio=bio,
        profile_picture=profilePicture
    )
    return success_response("User registered successfully", map_user_to_public_dict(new_user))

@router.post("/login")
async def login_for_access_token(login_data: UserLogin):
    """
    Endpoint để đăng nhập và nhận access token + refresh token.
    Sai email hoặc mật khẩu trả về 401; tài khoản đã xóa trả về 403.
    """
    user = await AuthService.login_user(email=login_data.email, password=login_data.password)
    return success_response("Logged in successfully", AuthService.issue_tokens(user).model_dump())

@router.post("/refresh-token")
async def refresh_access_token(payload: RefreshTokenRequest):
    """
    Nhận một refresh token và trả về một access token mới.
    """
    access_token = await AuthService.refresh_access_token(payload.refresh_token)
    return success_response("Token refreshed", {"access_token": access_token, "token_type": "bearer"})
