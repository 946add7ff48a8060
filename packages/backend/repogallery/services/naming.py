from __future__ import annotations

import re
import unicodedata

from ..core.errors import InvalidNameError

_DISALLOWED = re.compile(r"[^a-z0-9-]")

PLACEHOLDER_NAME = ".keep"
IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


def normalize_folder_name(raw: str) -> str:
    """Map any user-entered name to a folder identifier matching ``^[a-z0-9-]*$``.

    Diacritics are stripped after NFD decomposition; "đ" has no decomposition
    and is mapped to "d" explicitly. Idempotent.
    """
    text = unicodedata.normalize("NFD", raw.lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = text.replace("đ", "d")
    return _DISALLOWED.sub("", text)


def require_folder_id(raw: str) -> str:
    folder_id = normalize_folder_name(raw)
    if not folder_id:
        raise InvalidNameError(f"'{raw}' is not a usable folder name")
    return folder_id


def is_image_name(name: str) -> bool:
    dot = name.rfind(".")
    return dot >= 0 and name[dot:].lower() in IMAGE_EXTS


def placeholder_path(folder_id: str) -> str:
    return f"{folder_id}/{PLACEHOLDER_NAME}"


def join_path(folder_id: str, name: str) -> str:
    return f"{folder_id}/{name}"
