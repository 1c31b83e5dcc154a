"""Upload validation.

Checks a selected file's extension and size before it is accepted for
upload.  Purely synchronous; no side effects.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from finsight.errors import FileTooLargeError, InvalidFileTypeError
from finsight.models import BYTES_PER_MIB, UploadCandidate

ALLOWED_EXTENSIONS = ("pdf", "csv", "xlsx", "xls")
MAX_UPLOAD_BYTES = 10 * BYTES_PER_MIB


def file_extension(name: str) -> str:
    """Return the lowercase text after the last dot of *name*.

    A name without a dot yields the whole lowercased name, which is never
    a valid extension.
    """
    return name.rsplit(".", 1)[-1].lower()


def validate_upload(
    name: str,
    size_bytes: int,
    path: Path | None = None,
    allowed_extensions: Iterable[str] = ALLOWED_EXTENSIONS,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> UploadCandidate:
    """Validate a selected file and return it as an :class:`UploadCandidate`.

    Args:
        name: File name including extension.
        size_bytes: File size in bytes.
        path: Local path, carried through to the candidate.
        allowed_extensions: Accepted extensions, without dots.
        max_bytes: Largest accepted size (inclusive).

    Returns:
        The validated candidate.

    Raises:
        InvalidFileTypeError: If the extension is not accepted.
        FileTooLargeError: If the file is larger than *max_bytes*.
    """
    extension = file_extension(name)
    allowed = {ext.lower().lstrip(".") for ext in allowed_extensions}
    if extension not in allowed:
        raise InvalidFileTypeError(f"Unsupported file type: {name!r}")

    if size_bytes > max_bytes:
        raise FileTooLargeError(
            f"{name!r} is {size_bytes} bytes, limit is {max_bytes} bytes"
        )

    return UploadCandidate(name=name, extension=extension, size_bytes=size_bytes, path=path)


def validate_path(
    path: Path,
    allowed_extensions: Iterable[str] = ALLOWED_EXTENSIONS,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> UploadCandidate:
    """Validate a local file by stat-ing it.

    Raises:
        FileNotFoundError: If *path* does not exist.
        InvalidFileTypeError: If the extension is not accepted.
        FileTooLargeError: If the file is too large.
    """
    path = Path(path)
    size = path.stat().st_size
    return validate_upload(
        path.name,
        size,
        path=path,
        allowed_extensions=allowed_extensions,
        max_bytes=max_bytes,
    )
