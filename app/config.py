# app/config.py
import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./parasto_admin.db")
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ---- S3-compatible object storage (Supabase Storage speaks S3 too) ----
S3_ENDPOINT = os.getenv("S3_ENDPOINT", "")  # e.g. https://<project>.supabase.co/storage/v1/s3
S3_REGION = os.getenv("S3_REGION", "")
S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY", "")
S3_SECRET_KEY = os.getenv("S3_SECRET_KEY", "")
ASSETS_BASE_URL = (os.getenv("ASSETS_BASE_URL") or "").rstrip("/")

# ---- Buckets ----
COVERS_BUCKET = os.getenv("COVERS_BUCKET", "audiobook-covers")
AUDIO_BUCKET = os.getenv("AUDIO_BUCKET", "audiobook-audio")
EBOOK_BUCKET = os.getenv("EBOOK_BUCKET", "ebook-files")
PROFILE_IMAGES_BUCKET = os.getenv("PROFILE_IMAGES_BUCKET", "profile-images")
NARRATOR_REQUESTS_BUCKET = os.getenv("NARRATOR_REQUESTS_BUCKET", "narrator-requests")

KNOWN_BUCKETS = (
    COVERS_BUCKET,
    AUDIO_BUCKET,
    EBOOK_BUCKET,
    PROFILE_IMAGES_BUCKET,
    NARRATOR_REQUESTS_BUCKET,
)

# Signed audio/voice-sample URLs
AUDIO_URL_EXPIRY = int(os.getenv("AUDIO_URL_EXPIRY", "3600"))
