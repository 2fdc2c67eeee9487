"""Path normalization for the path prompt.

Accepts what operators actually type or drag into a terminal: ``@``-prefixed
mentions, ``~`` and environment variables, quoted paths, exotic Unicode
spaces and, on Windows, MSYS/Cygwin drive notations.
"""

from __future__ import annotations

import ntpath
import os
import re
import sys
from typing import Literal

from ralph_tui.errors import ValidationFailed

PathKind = Literal["file", "directory", "any"]

# Matches various Unicode space characters that should be normalized to ASCII space.
UNICODE_SPACES = re.compile("[\u00A0\u2000-\u200A\u202F\u205F\u3000]")

_MSYS_DRIVE = re.compile(r"^/([a-zA-Z])(/.*)?$")
_CYGWIN_DRIVE = re.compile(r"^/cygdrive/([a-zA-Z])(/.*)?$")
_DRIVE_RELATIVE = re.compile(r"^([a-zA-Z]):(?![\\/])(.*)$")


def normalize_unicode_spaces(s: str) -> str:
    """Replace exotic Unicode whitespace characters with plain ASCII space."""
    return UNICODE_SPACES.sub(" ", s)


def normalize_at_prefix(file_path: str) -> str:
    """Strip a leading ``@`` prefix from *file_path*."""
    if file_path.startswith("@"):
        return file_path[1:]
    return file_path


def _strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    return text


def convert_drive_notation(file_path: str) -> str:
    """Turn ``/c/x`` and ``/cygdrive/c/x`` into ``C:\\x``."""
    match = _CYGWIN_DRIVE.match(file_path) or _MSYS_DRIVE.match(file_path)
    if not match:
        return file_path
    rest = (match.group(2) or "/").replace("/", "\\")
    return f"{match.group(1).upper()}:{rest}"


def _resolve_drive_relative(file_path: str) -> str:
    """Resolve ``C:x`` against the current directory of that drive."""
    match = _DRIVE_RELATIVE.match(file_path)
    if not match:
        return file_path
    drive = match.group(1).upper()
    # The per-drive cwd is only known for the current drive
    cwd = os.getcwd()
    if ntpath.splitdrive(cwd)[0].upper() == f"{drive}:":
        return ntpath.join(cwd, match.group(2))
    return f"{drive}:\\{match.group(2)}"


def normalize_path(
    raw: str,
    base_dir: str | None = None,
    windows: bool | None = None,
) -> str:
    """Normalize operator input into an absolute path.

    Args:
        raw: Text as typed
        base_dir: Directory relative paths are resolved against (default: cwd)
        windows: Apply Windows drive conversions (default: detect platform)

    Returns:
        Absolute path, or "" when the input is blank
    """
    if windows is None:
        windows = sys.platform == "win32"

    text = _strip_quotes(normalize_unicode_spaces(raw).strip())
    text = normalize_at_prefix(text).strip()
    if not text:
        return ""

    text = os.path.expandvars(text)
    if text == "~" or text.startswith("~/") or text.startswith("~\\"):
        text = os.path.expanduser("~") + text[1:]

    if windows:
        text = convert_drive_notation(text)
        text = _resolve_drive_relative(text)
        pathmod = ntpath
    else:
        pathmod = os.path

    if not pathmod.isabs(text):
        text = pathmod.join(base_dir or os.getcwd(), text)
    return pathmod.normpath(text)


def check_path(path: str, must_exist: bool = False, kind: PathKind = "any") -> None:
    """Check a normalized path.

    Raises:
        ValidationFailed: With the message shown under the prompt
    """
    if not os.path.exists(path):
        if must_exist:
            raise ValidationFailed("Path does not exist")
        return
    if kind == "file" and not os.path.isfile(path):
        raise ValidationFailed("Path must be a file")
    if kind == "directory" and not os.path.isdir(path):
        raise ValidationFailed("Path must be a directory")
