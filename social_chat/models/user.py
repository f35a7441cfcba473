from beanie import Document
from pydantic import Field, EmailStr
from pymongo import ASCENDING, IndexModel
from typing import Optional, List
from datetime import datetime

class User(Document):
    """
    Đại diện cho một người dùng trong collection 'users'.

    Quan hệ bạn bè là vô hướng nhưng được lưu thành hai tập có hướng:
    người gửi lời mời giữ ID của người nhận trong `friendIds`, người nhận giữ
    ID của người gửi trong `friendOfIds`. Chỉ FriendshipService được phép
    thay đổi hai trường này.
    """
    email: EmailStr = Field(..., description="Địa chỉ email duy nhất của người dùng.")
    hashedPassword: str = Field(..., description="Mật khẩu đã được băm của người dùng.")
    name: str = Field(..., description="Tên hiển thị của người dùng.")
    bio: Optional[str] = Field(default=None, description="Tiểu sử ngắn của người dùng.")

    profilePictureUrl: Optional[str] = Field(default=None, description="URL ảnh đại diện.")
    profilePicturePublicId: Optional[str] = Field(default=None, description="ID công khai của ảnh trên Cloudinary.")

    friendIds: List[str] = Field(default_factory=list, description="Bạn bè mà người dùng này là người khởi tạo quan hệ.")
    friendOfIds: List[str] = Field(default_factory=list, description="Bạn bè đã khởi tạo quan hệ tới người dùng này.")

    isDeleted: bool = Field(default=False, description="Tài khoản đã bị xóa mềm hay chưa.")
    deletedAt: Optional[datetime] = Field(default=None)
    createdAt: datetime = Field(default_factory=datetime.utcnow, description="Thời điểm người dùng được tạo.")
    updatedAt: datetime = Field(default_factory=datetime.utcnow, description="Thời điểm cập nhật lần cuối.")

    @property
    def all_friend_ids(self) -> List[str]:
        """Hợp của hai tập bạn bè, giữ nguyên thứ tự xuất hiện."""
        return list(dict.fromkeys(self.friendIds + self.friendOfIds))

    def is_friend_with(self, user_id: str) -> bool:
        return user_id in self.friendIds or user_id in self.friendOfIds

    class Settings:
        name = "users"
        indexes = [
            IndexModel([("email", ASCENDING)], unique=True),
            "isDeleted",
            "friendIds",
            "friendOfIds",
        ]
