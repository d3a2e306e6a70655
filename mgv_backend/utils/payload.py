# mgv_backend/utils/payload.py
from typing import List, Optional

from ..errors import InvalidInput

# upper bound of db.Integer primary keys
MAX_ID = 2 ** 31 - 1


def text(data: dict, key: str, strip: bool = True) -> str:
    """
    String value of ``data[key]``; missing or null gives "".

    Numbers are accepted and turned into their string form (a phone number
    sent as 8031234567). Anything else is rejected with InvalidInput.
    """
    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise InvalidInput(f"{key} must be a string.")
    value = str(value)
    return value.strip() if strip else value


def string_list(data: dict, key: str) -> List[str]:
    """Non-empty, stripped strings from a JSON list; null or missing gives []."""
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidInput(f"{key} must be a list of strings.")
    return [v.strip() for v in value if v.strip()]


def parse_id(raw) -> Optional[int]:
    """Positive integer id from 12 or "12"; None when out of range or malformed."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, str) and raw.strip().isdecimal():
        raw = int(raw.strip())
    if not isinstance(raw, int):
        return None
    return raw if 0 < raw <= MAX_ID else None
