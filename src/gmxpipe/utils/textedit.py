"""
In-place edits of generated text files (topology, coordinates, parameters).

Each function returns the number of edits it applied. An anchor or token that
is not found leaves the file untouched and returns 0, unless ``strict`` is set,
in which case :class:`AnchorNotFoundError` is raised.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Union

from ..errors import AnchorNotFoundError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

__all__ = ["append_text", "insert_after", "replace_line", "substitute_token", "read_lines"]


def read_lines(path: PathLike) -> List[str]:
    """Read a file keeping line endings exactly as stored."""
    with open(path, "r", newline="") as fh:
        return fh.read().splitlines(keepends=True)


def _write(path: PathLike, content: str) -> None:
    with open(path, "w", newline="") as fh:
        fh.write(content)


def _line_ending(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    if line.endswith("\n"):
        return "\n"
    return ""


def append_text(path: PathLike, text: str) -> int:
    """Append ``text`` (newline-terminated) to the end of ``path``.

    Nothing is deduplicated: appending the same block twice leaves two copies.
    """
    if not text.endswith("\n"):
        text += "\n"
    with open(path, "a", newline="") as fh:
        fh.write(text)
    logger.info("Appended %d line(s) to %s", text.count("\n"), path)
    return 1


def insert_after(path: PathLike, anchor: str, text: str, strict: bool = False) -> int:
    """Insert ``text`` as new line(s) after every line containing ``anchor``."""
    lines = read_lines(path)
    out: List[str] = []
    hits = 0
    block = text if text.endswith("\n") else text + "\n"
    for line in lines:
        if anchor in line:
            hits += 1
            if not _line_ending(line):
                line += "\n"
            out.append(line)
            out.append(block)
        else:
            out.append(line)

    if not hits:
        if strict:
            raise AnchorNotFoundError(path, anchor)
        logger.warning("Anchor %r not found in %s; nothing inserted", anchor, path)
        return 0

    _write(path, "".join(out))
    logger.info("Inserted %r after %d line(s) matching %r in %s", text.strip(), hits, anchor, path)
    return hits


def replace_line(path: PathLike, lineno: int, text: str) -> int:
    """Replace line ``lineno`` (1-based) with ``text``; all other lines are kept byte for byte."""
    lines = read_lines(path)
    if lineno < 1 or lineno > len(lines):
        raise IndexError(f"{path} has {len(lines)} line(s); cannot replace line {lineno}")
    old = lines[lineno - 1]
    lines[lineno - 1] = text.rstrip("\r\n") + _line_ending(old)
    _write(path, "".join(lines))
    logger.info("Replaced line %d of %s", lineno, path)
    return 1


def substitute_token(path: PathLike, token: str, value: str, strict: bool = False) -> int:
    """Replace every literal occurrence of ``token`` with ``value``."""
    if not token:
        raise ValueError("token must not be empty")
    with open(path, "r", newline="") as fh:
        content = fh.read()
    count = content.count(token)
    if not count:
        if strict:
            raise AnchorNotFoundError(path, token)
        logger.warning("Token %r not found in %s; file left unchanged", token, path)
        return 0
    _write(path, content.replace(token, value))
    logger.info("Replaced %d occurrence(s) of %r with %r in %s", count, token, value, path)
    return count
