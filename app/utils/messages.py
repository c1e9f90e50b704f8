# app/utils/messages.py
"""User-facing (Persian) strings returned by the admin API."""

from app.utils.farsi import to_farsi_digits

# ---- generic ----
ERROR = "خطا"
SAVED = "ذخیره شد"
DELETED = "حذف شد"
NOT_FOUND = "مورد یافت نشد"
DUPLICATE = "این مورد از قبل وجود دارد."
INVALID_INPUT = "ورودی نامعتبر است"
STORAGE_FAILED = "خطا در ارتباط با فضای ذخیره‌سازی"

# ---- auth ----
LOGIN_REQUIRED = "ابتدا وارد شوید"
FORBIDDEN = "دسترسی رد شد"
INVALID_CREDENTIALS = "ایمیل یا رمز عبور نادرست است"

# ---- chapters ----
INVALID_BOOK_ID = "شناسه کتاب نامعتبر است"
BOOK_NOT_FOUND = "کتاب یافت نشد"
CHAPTER_NOT_FOUND = "فصل یافت نشد"
LOAD_CHAPTERS_FAILED = "خطا در بارگذاری فصل‌ها"
ORDER_SAVED = "ترتیب فصل‌ها ذخیره شد"
SAVE_ORDER_FAILED = "خطا در ذخیره ترتیب"
CHAPTER_EDITED = "فصل ویرایش شد"
EDIT_FAILED = "خطا در ویرایش"
CHAPTER_DELETED = "فصل حذف شد"
DELETE_FAILED = "خطا در حذف"
CHAPTER_ADDED = "فصل با موفقیت اضافه شد"
UPLOAD_FAILED = "خطا در آپلود"
BULK_UPLOAD_FAILED = "خطا در آپلود دسته‌ای"
TITLE_FA_REQUIRED = "عنوان فارسی الزامی است"
NO_VALID_FILES = "هیچ فایل معتبری انتخاب نشد"
FILE_READ_FAILED = "خطا در خواندن فایل"

# ---- categories ----
CATEGORY_DUPLICATE = "این دسته‌بندی یا نام مشابه آن از قبل وجود دارد."
CATEGORY_NAME_REQUIRED = "نام دسته‌بندی الزامی است"

# ---- creators ----
CREATOR_SAVED = "سازنده با موفقیت ذخیره شد"
CREATOR_SAVE_FAILED = "خطا در ذخیره سازنده"
CREATOR_DELETE_FAILED = "خطا در حذف سازنده"
CREATOR_HAS_WORKS = "این سازنده به آثاری متصل است و قابل حذف نیست"
CREATOR_NAME_REQUIRED = "نام سازنده الزامی است"
INVALID_CREATOR_TYPE = "نوع سازنده نامعتبر است"

# ---- users ----
ROLE_CHANGE_FAILED = "خطا در تغییر نقش کاربر."
ROLE_CHANGE_DENIED = "خطا در تغییر نقش کاربر. دسترسی رد شد."
SELF_DISABLE_DENIED = "غیرفعال کردن حساب خودتان مجاز نیست"
INVALID_ROLE = "نقش نامعتبر است"
NOTE_SAVED = "یادداشت ذخیره شد"
USER_NOT_FOUND = "کاربر یافت نشد"

# ---- content workflow ----
CONTENT_APPROVED = "محتوا تأیید شد"
CONTENT_REJECTED = "محتوا رد شد"
CONTENT_UNDER_REVIEW = "محتوا در حال بررسی است"
CONTENT_SUBMITTED = "محتوا برای بررسی ارسال شد"
REJECTION_REASON_REQUIRED = "دلیل رد الزامی است"
INVALID_TRANSITION = "این تغییر وضعیت مجاز نیست"
NOTHING_SELECTED = "هیچ موردی انتخاب نشده است"
COVER_UPLOADED = "تصویر جلد آپلود شد"
EBOOK_UPLOADED = "فایل کتاب الکترونیکی آپلود شد"
INVALID_FILE_TYPE = "نوع فایل مجاز نیست"

# ---- support ----
TICKET_NOT_FOUND = "تیکت یافت نشد"
LOAD_TICKET_FAILED = "خطا در بارگذاری تیکت"
MESSAGE_REQUIRED = "متن پیام الزامی است"
REPLY_SENT = "پاسخ ارسال شد"
INVALID_STATUS = "وضعیت نامعتبر است"

# ---- reviews ----
REVIEW_DELETED = "نظر حذف شد"
REVIEW_NOT_FOUND = "نظری یافت نشد"

# ---- narrator requests ----
REQUEST_NOT_FOUND = "درخواست یافت نشد"
REQUEST_NOT_PENDING = "این درخواست قبلاً بررسی شده است"
REQUEST_APPROVED = "درخواست تأیید شد"
REQUEST_REJECTED = "درخواست رد شد"


def chapters_uploaded(count: int) -> str:
    return f"{to_farsi_digits(count)} فصل آپلود شد"


def chapters_uploaded_with_errors(count: int, failed: int) -> str:
    return f"{to_farsi_digits(count)} فصل آپلود شد، {to_farsi_digits(failed)} خطا داشت"


def files_rejected(count: int) -> str:
    return f"{to_farsi_digits(count)} فایل رد شد"


def items_approved(count: int) -> str:
    return f"{to_farsi_digits(count)} مورد تأیید شد"


def items_rejected(count: int) -> str:
    return f"{to_farsi_digits(count)} مورد رد شد"


def items_featured(count: int, featured: bool) -> str:
    action = "ویژه" if featured else "از حالت ویژه خارج"
    return f"{to_farsi_digits(count)} مورد {action} شد"


def items_deleted(count: int) -> str:
    return f"{to_farsi_digits(count)} مورد حذف شد"


def creator_deleted(name: str) -> str:
    return f'"{name}" با موفقیت حذف شد'


def chapter_title(number: int) -> str:
    return f"فصل {to_farsi_digits(number)}"
