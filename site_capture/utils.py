# File: site_capture/utils.py
"""site_capture.utils: Утилитарные функции для заголовков, MIME-типов и имён файлов."""

from __future__ import annotations

import mimetypes
from typing import Optional, Sequence, Tuple
from urllib.parse import urlsplit

from site_capture.logger import logger

__all__: Sequence[str] = (
    "parse_header",
    "guess_mime_type",
    "guess_extension",
    "safe_filename",
)

DEFAULT_MIME = "text/plain"
MAX_NAME_LENGTH = 100

# Подстрока MIME-типа -> расширение; порядок важен: "json" раньше "js", "svg" раньше "xml".
_EXTENSIONS: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("html",), ".html"),
    (("json",), ".json"),
    (("svg",), ".svg"),
    (("xml",), ".xml"),
    (("javascript", "js"), ".js"),
    (("css",), ".css"),
    (("png",), ".png"),
    (("jpeg", "jpg"), ".jpg"),
    (("gif",), ".gif"),
    (("pdf",), ".pdf"),
    (("text/plain",), ".txt"),
)


def parse_header(raw: str) -> Optional[Tuple[str, str]]:
    """Разбирает строку вида 'Key: Value'. Возвращает None при неверном формате."""
    key, sep, value = raw.partition(":")
    key = key.strip()
    if not sep or not key:
        logger.warning("Invalid header format %r, expected 'Key: Value'", raw)
        return None
    return key, value.strip()


def guess_mime_type(url: str) -> str:
    """Определяет MIME-тип только по расширению пути URL."""
    path = urlsplit(url).path.lower()
    mime, _ = mimetypes.guess_type(path, strict=False)
    return mime or DEFAULT_MIME


def guess_extension(mime_type: str, body: str) -> str:
    """Подбирает расширение файла по MIME-типу, а при неудаче по содержимому."""
    mime_type = (mime_type or "").lower()
    for needles, ext in _EXTENSIONS:
        if any(n in mime_type for n in needles):
            return ext

    head = body.lstrip().lower()
    if "<html" in head or "<!doctype" in head:
        return ".html"
    if head.startswith(("{", "[")):
        return ".json"
    if head.startswith("<"):
        return ".xml"
    return ".txt"


def safe_filename(url: str) -> str:
    """Превращает URL в безопасную часть имени файла (не длиннее 100 символов)."""
    name = url.replace("://", "_")
    for ch in "/?&=":
        name = name.replace(ch, "_")
    return name[:MAX_NAME_LENGTH]
