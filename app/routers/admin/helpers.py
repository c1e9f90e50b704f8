# app/routers/admin/helpers.py
from typing import Any, Optional

from fastapi import UploadFile


def to_int_or_none(v: Any) -> Optional[int]:
    if v is None or str(v).strip() == "":
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def clean_str(v: Any) -> Optional[str]:
    """Trimmed string, or None when blank."""
    if v is None:
        return None
    v = str(v).strip()
    return v or None


def to_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in ("1", "true", "yes", "on")


def to_id_list(v: Any) -> list[int]:
    """[1, "2", 3] or "1,2,3" -> [1, 2, 3]; junk is dropped."""
    if v is None:
        return []
    if isinstance(v, str):
        v = v.split(",")
    out = []
    for item in v:
        parsed = to_int_or_none(item)
        if parsed is not None and parsed not in out:
            out.append(parsed)
    return out


def upload_size(upload: UploadFile) -> int:
    size = getattr(upload, "size", None)
    if size is not None:
        return size
    f = upload.file
    pos = f.tell()
    f.seek(0, 2)
    size = f.tell()
    f.seek(pos)
    return size


def upload_mime(upload: UploadFile) -> Optional[str]:
    ctype = (upload.content_type or "").strip()
    # browsers send octet-stream for anything they cannot sniff
    if not ctype or ctype == "application/octet-stream":
        return None
    return ctype


def file_extension(file_name: Optional[str]) -> str:
    name = file_name or ""
    return name.rsplit(".", 1)[1].lower() if "." in name else ""
