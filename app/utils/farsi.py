# app/utils/farsi.py
_FA_DIGITS = str.maketrans("0123456789", "۰۱۲۳۴۵۶۷۸۹")


def to_farsi_digits(value) -> str:
    """Render ASCII digits in ``value`` as Persian digits (12 -> ۱۲)."""
    return str(value).translate(_FA_DIGITS)
