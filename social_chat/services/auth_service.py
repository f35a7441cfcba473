import logging
from typing import Optional
from fastapi import UploadFile
from passlib.context import CryptContext
from pymongo.errors import DuplicateKeyError
from ..models.user import User
from ..schemas import TokenPair
from ..exceptions import ConflictError, ForbiddenError, UnauthorizedError
from ..utils import upload_to_cloudinary, delete_from_cloudinary, validate_image, to_object_id
from . import jwt_service

logger = logging.getLogger(__name__)

# Thiết lập ngữ cảnh băm mật khẩu
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

class AuthService:

    @staticmethod
    def verify_password(plain_password, hashed_password):
        """Xác minh mật khẩu thuần túy với mật khẩu đã được băm."""
        if not hashed_password:
            return False
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def get_password_hash(password):
        """Băm một mật khẩu thuần túy."""
        return pwd_context.hash(password)

    @staticmethod
    async def register_user(
        email: str,
        password: str,
        name: str,
        bio: Optional[str] = None,
        profile_picture: Optional[UploadFile] = None
    ) -> User:
        """
        Xử lý đăng ký người dùng mới.
        Kiểm tra email đã tồn tại, băm mật khẩu, upload ảnh đại diện (nếu có)
        và tạo người dùng.
        """
        if await User.find_one(User.email == email):
            raise ConflictError("User with this email already exists")

        uploaded = None
        if profile_picture:
            validate_image(profile_picture)
            uploaded = await upload_to_cloudinary(profile_picture, folder="profile_pictures")

        # Salt được passlib xử lý tự động và là một phần của chuỗi băm.
        new_user = User(
            email=email,
            hashedPassword=AuthService.get_password_hash(password),
            name=name,
            bio=bio or None,
            profilePictureUrl=uploaded["url"] if uploaded else None,
            profilePicturePublicId=uploaded["public_id"] if uploaded else None
        )

        try:
            await new_user.insert()
        except DuplicateKeyError:
            # Hai yêu cầu đăng ký cùng email chạy song song
            if uploaded:
                await delete_from_cloudinary(uploaded["public_id"])
            raise ConflictError("User with this email already exists")

        logger.info("Registered user %s", new_user.id)
        return new_user

    @staticmethod
    async def login_user(email: str, password: str) -> User:
        """
        Xử lý đăng nhập của người dùng bằng email và mật khẩu.
        """
        user = await User.find_one(User.email == email)
        if not user or not AuthService.verify_password(password, user.hashedPassword):
            raise UnauthorizedError("Invalid email or password")

        # Kiểm tra nếu tài khoản đã bị xóa (soft delete)
        if user.isDeleted:
            raise ForbiddenError("This account has been deleted")

        return user

    @staticmethod
    def issue_tokens(user: User) -> TokenPair:
        subject = {"sub": str(user.id)}
        return TokenPair(
            access_token=jwt_service.create_access_token(subject),
            refresh_token=jwt_service.create_refresh_token(subject)
        )

    @staticmethod
    async def refresh_access_token(refresh_token: str) -> str:
        """
        Nhận một refresh token và trả về một access token mới.
        """
        token_data = jwt_service.decode_token(refresh_token, expected_type="refresh")
        if not token_data or not token_data.userId:
            raise UnauthorizedError("Invalid or expired refresh token")

        oid = to_object_id(token_data.userId)
        user = await User.get(oid) if oid else None
        if not user:
            raise UnauthorizedError("Invalid or expired refresh token")
        if user.isDeleted:
            raise ForbiddenError("This account has been deleted")

        return jwt_service.create_access_token({"sub": str(user.id)})
