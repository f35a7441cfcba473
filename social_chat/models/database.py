# Nhập các thư viện cần thiết
import logging
from motor.motor_asyncio import AsyncIOMotorClient # Thư viện bất đồng bộ cho MongoDB
from beanie import init_beanie # ODM (Object-Document Mapper) cho MongoDB
from typing import Type, Callable, Awaitable, TypeVar

from ..configs import settings

# Nhập các model từ các file khác
from .user import User
from .friend_request import FriendRequest
from .one_on_one_chat import OneOnOneChat
from .group_chat import GroupChat
from .message import Message

logger = logging.getLogger(__name__)

# Danh sách các model Beanie sẽ được khởi tạo
DOCUMENT_MODELS: list[Type] = [User, FriendRequest, OneOnOneChat, GroupChat, Message]

client = None  # 🔹 client global, dùng 1 lần suốt vòng đời app

T = TypeVar("T")

async def init_db(mongo_client=None):
    """
    Khởi tạo kết nối cơ sở dữ liệu và Beanie ODM.
    Đảm bảo chỉ tạo một client duy nhất. Có thể truyền sẵn một client
    (ví dụ client in-memory khi chạy test).
    """
    global client

    if mongo_client is None:
        # Nếu đã có client, bỏ qua
        if client is not None:
            return client

        if not settings.MONGO_URI:
            raise ValueError("Không tìm thấy MONGO_URI trong các biến môi trường.")
        mongo_client = AsyncIOMotorClient(settings.MONGO_URI)

    client = mongo_client
    database = client.get_database(settings.MONGO_DB_NAME)

    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    logger.info("Đã kết nối MongoDB, database '%s'", settings.MONGO_DB_NAME)

    return client

async def run_in_transaction(callback: Callable[..., Awaitable[T]]) -> T:
    """
    Chạy `callback(session)` trong một transaction MongoDB.

    Mọi thao tác ghi bên trong callback phải truyền `session=session`; hoặc
    tất cả cùng được commit, hoặc không thao tác nào có hiệu lực. Motor tự
    chạy lại toàn bộ callback khi gặp lỗi transaction tạm thời, nên callback
    phải tự đọc lại dữ liệu cần kiểm tra. Lỗi nghiệp vụ ném ra từ callback sẽ
    hủy transaction và được ném tiếp nguyên vẹn.

    Khi MONGO_TRANSACTIONS tắt (server standalone, test), callback được gọi
    với session = None.
    """
    if not settings.MONGO_TRANSACTIONS:
        return await callback(None)

    if client is None:
        raise RuntimeError("Cơ sở dữ liệu chưa được khởi tạo.")

    async with await client.start_session() as session:
        return await session.with_transaction(callback)
