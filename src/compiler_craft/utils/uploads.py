"""Decoding of uploaded source files."""

from __future__ import annotations

import structlog

from compiler_craft.utils.errors import InputError

log = structlog.get_logger()

NOT_TEXT_MESSAGE = "Could not read file content as text."


def decode_source_file(content: bytes, filename: str | None = None) -> str:
    """Decode uploaded bytes as UTF-8 source text.

    A leading byte-order mark is dropped. NUL bytes are treated as a sign of
    binary content.

    Args:
        content: Raw uploaded bytes
        filename: Original filename, used only for logging

    Returns:
        The decoded text

    Raises:
        InputError: If the content is not text
    """
    if b"\x00" in content:
        log.info("upload_rejected_binary", filename=filename, size=len(content))
        raise InputError(NOT_TEXT_MESSAGE)

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        log.info("upload_rejected_encoding", filename=filename, error=str(e))
        raise InputError(NOT_TEXT_MESSAGE) from e

    log.debug("upload_decoded", filename=filename, length=len(text))
    return text
