# app/utils/audio_validator.py
"""
Audio file validation for chapter uploads.

- Accepted formats: MP3, M4A (AAC)
- Max file size: 500 MB per chapter (must match the storage bucket limit)
- Max chapter length: 240 minutes
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from botocore.exceptions import EndpointConnectionError

SERVER_MAX_FILE_SIZE_MB = 500
MAX_FILE_SIZE_BYTES = SERVER_MAX_FILE_SIZE_MB * 1024 * 1024
# 80% of the limit
WARN_FILE_SIZE_BYTES = 400 * 1024 * 1024
MAX_DURATION_SECONDS = 240 * 60

ACCEPTED_EXTENSIONS = ("mp3", "m4a")
ACCEPTED_MIME_TYPES = (
    "audio/mpeg",
    "audio/mp3",
    "audio/mp4",
    "audio/m4a",
    "audio/x-m4a",
    "audio/aac",
)

CONTENT_TYPES = {
    "mp3": "audio/mpeg",
    "m4a": "audio/mp4",
}


@dataclass(frozen=True)
class AudioValidationResult:
    is_valid: bool
    error_message: Optional[str] = None
    warning_message: Optional[str] = None

    @classmethod
    def valid(cls, warning: Optional[str] = None) -> "AudioValidationResult":
        return cls(is_valid=True, warning_message=warning)

    @classmethod
    def invalid(cls, error: str) -> "AudioValidationResult":
        return cls(is_valid=False, error_message=error)


def get_extension(file_name: str) -> str:
    if "." not in (file_name or ""):
        return ""
    return file_name.rsplit(".", 1)[1].lower()


def content_type_for(file_name: str) -> str:
    return CONTENT_TYPES.get(get_extension(file_name), "application/octet-stream")


def validate(
    *,
    file_name: str,
    file_size_bytes: int,
    mime_type: Optional[str] = None,
    duration_seconds: Optional[int] = None,
) -> AudioValidationResult:
    if get_extension(file_name) not in ACCEPTED_EXTENSIONS:
        return AudioValidationResult.invalid(
            "فرمت فایل پشتیبانی نمی‌شود.\n\n"
            "فرمت‌های مجاز: MP3، M4A (AAC)"
        )

    if mime_type:
        normalized = mime_type.lower()
        known = any(normalized in m or m in normalized for m in ACCEPTED_MIME_TYPES)
        # Only reject when it is clearly not audio
        if not known and not normalized.startswith("audio/"):
            return AudioValidationResult.invalid(
                "این فایل یک فایل صوتی معتبر نیست.\n\n"
                "فرمت‌های مجاز: MP3، M4A (AAC)"
            )

    if file_size_bytes > MAX_FILE_SIZE_BYTES:
        size_mb = f"{file_size_bytes / (1024 * 1024):.1f}"
        return AudioValidationResult.invalid(
            f"حجم فایل از حد مجاز بیشتر است ({size_mb} مگابایت).\n\n"
            f"حداکثر حجم مجاز: {SERVER_MAX_FILE_SIZE_MB} مگابایت"
        )

    if duration_seconds is not None and duration_seconds > MAX_DURATION_SECONDS:
        minutes = f"{duration_seconds / 60:.0f}"
        return AudioValidationResult.invalid(
            f"مدت زمان فصل بیش از حد مجاز است ({minutes} دقیقه).\n\n"
            f"حداکثر مدت مجاز: {MAX_DURATION_SECONDS // 60} دقیقه"
        )

    if file_size_bytes > WARN_FILE_SIZE_BYTES:
        size_mb = f"{file_size_bytes / (1024 * 1024):.1f}"
        return AudioValidationResult.valid(
            warning=f"حجم فایل زیاد است ({size_mb} مگابایت). آپلود ممکن است زمان‌بر باشد."
        )

    return AudioValidationResult.valid()


def upload_error_message(exc: BaseException) -> str:
    """Friendly Persian text for a failed chapter upload."""
    text = str(exc).lower()
    if isinstance(exc, (EndpointConnectionError, ConnectionError, TimeoutError)) or "timeout" in text:
        return "خطا در اتصال به سرور. لطفاً اتصال اینترنت را بررسی کنید."
    if "payload too large" in text or "entitytoolarge" in text or "413" in text:
        return f"حجم فایل از حد مجاز سرور بیشتر است (حداکثر {SERVER_MAX_FILE_SIZE_MB} مگابایت)."
    if "accessdenied" in text or "403" in text or "unauthorized" in text:
        return "دسترسی به فضای ذخیره‌سازی رد شد."
    if "unique" in text or "duplicate" in text or "23505" in text:
        return "فصلی با این شماره از قبل وجود دارد."
    return f"خطا در آپلود: {exc}"
