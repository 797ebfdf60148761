# config.py - Central configuration loaded from environment variables
import os

from dotenv import load_dotenv

load_dotenv()

# Database
DATABASE_PATH = os.getenv("DATABASE_PATH", "civicwatch.db")
DB_BUSY_TIMEOUT = float(os.getenv("DB_BUSY_TIMEOUT", 5))

# Net support (support - opposition) a pending report needs before it escalates
ESCALATION_THRESHOLD = int(os.getenv("ESCALATION_THRESHOLD", 5))

# Auth context issued by the external auth provider
JWT_SECRET = os.getenv("JWT_SECRET", "supersecretkey")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Uploads
UPLOAD_TIMEOUT = float(os.getenv("UPLOAD_TIMEOUT", 20))
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}

CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET")
CLOUDINARY_FOLDER = os.getenv("CLOUDINARY_FOLDER", "civicwatch")

# Administrators who receive review notifications (escalations, proofs, finished work)
ADMIN_USER_IDS = [u.strip() for u in os.getenv("ADMIN_USER_IDS", "").split(",") if u.strip()]

# Firebase (only used to mirror notifications into Firestore)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Map feed
MAP_FEED_CACHE_TTL = float(os.getenv("MAP_FEED_CACHE_TTL", 5))

# Server
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
