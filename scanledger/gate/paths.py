"""ファイルパス・商品IDの検証。失敗時は ValueError（理由付き）。"""
from __future__ import annotations

import os
import re
from pathlib import Path, PurePath
from typing import Iterable, Sequence

from scanledger.config import AllowedDirectories

EXPORT_EXTENSION = ".xlsx"
ITEM_ID_PATTERN = re.compile(r"[A-Z0-9]{10}")


def _has_traversal(path: str) -> bool:
    return ".." in PurePath(path).parts or ".." in PurePath(os.path.normpath(path)).parts


def _resolve(path: str) -> Path:
    return Path(os.path.normpath(os.path.expanduser(path))).resolve()


def _is_under(path: Path, dirs: Iterable[Path]) -> bool:
    for d in dirs:
        base = d.expanduser().resolve()
        if path == base or base in path.parents:
            return True
    return False


def validate_file_path(
    path: str, allowed_extensions: Sequence[str], dirs: AllowedDirectories
) -> bool:
    """入力ファイル用。拡張子・親ディレクトリ参照・許可ディレクトリを検査。"""
    if _has_traversal(path):
        raise ValueError("Path traversal detected")
    resolved = _resolve(path)
    allowed = [e.lower() for e in allowed_extensions]
    if resolved.suffix.lower() not in allowed:
        raise ValueError(f"Invalid file extension. Allowed: {', '.join(allowed)}")
    if not _is_under(resolved, dirs.for_source_files()):
        raise ValueError(
            "File must be in an allowed directory (Documents, Downloads, Desktop, or App Data)"
        )
    return True


def validate_export_path(path: str, dirs: AllowedDirectories) -> bool:
    """エクスポート先用。.xlsx のみ、アプリ専用ディレクトリは不可。"""
    if _has_traversal(path):
        raise ValueError("Path traversal detected")
    resolved = _resolve(path)
    if resolved.suffix.lower() != EXPORT_EXTENSION:
        raise ValueError(f"Export file must have {EXPORT_EXTENSION} extension")
    if not _is_under(resolved, dirs.for_exports()):
        raise ValueError("Export file must be in Documents, Downloads, or Desktop")
    return True


def is_valid_item_id(value: object) -> bool:
    return isinstance(value, str) and ITEM_ID_PATTERN.fullmatch(value) is not None


def sanitize_item_id(value: object) -> str:
    """商品ID（英大文字・数字10桁）を検証して返す。"""
    if not isinstance(value, str):
        raise ValueError("Item ID must be a string")
    if not ITEM_ID_PATTERN.fullmatch(value):
        raise ValueError("Invalid item ID format (must be 10 uppercase alphanumeric characters)")
    return value
