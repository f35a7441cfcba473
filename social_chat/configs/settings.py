import os
from dotenv import load_dotenv

# Tải các biến môi trường từ tệp .env
load_dotenv()

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

MONGO_URI = os.getenv("MONGO_URI")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "social-chat")
# Transaction của MongoDB chỉ chạy được trên replica set
MONGO_TRANSACTIONS = os.getenv("MONGO_TRANSACTIONS", "true").lower() in ("1", "true", "yes")

CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET")

# Kích thước trang mặc định cho các danh sách
USERS_BATCH = 15
FRIENDS_BATCH = 20
MESSAGES_BATCH = 50
CHATS_BATCH = 15
MAX_TAKE = 100
