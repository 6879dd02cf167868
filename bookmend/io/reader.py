"""Raw OCR text input."""

from __future__ import annotations

from pathlib import Path

from ..errors import DocumentDecodeError
from ..models.datatypes import Document


def read_document(path: Path, encoding: str = "ISO-8859-1", locale: str = "sv") -> Document:
    """Read and strictly decode a text file into a `Document`.

    Raises:
        DocumentDecodeError: If the file is missing, the encoding is unknown, or
            the bytes are not valid in that encoding.
    """

    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        raise DocumentDecodeError(
            detail=f"Input file `{path}` does not exist.",
            hint="Check the input path and try again.",
        ) from exc
    except OSError as exc:
        raise DocumentDecodeError(
            detail=f"Input file `{path}` could not be read: {exc.strerror or exc}.",
        ) from exc

    try:
        text = raw.decode(encoding)
    except LookupError as exc:
        raise DocumentDecodeError(
            detail=f"Unknown text encoding `{encoding}`.",
            hint="Use a Python codec name such as `utf-8` or `ISO-8859-1`.",
        ) from exc
    except UnicodeDecodeError as exc:
        raise DocumentDecodeError(
            detail=(
                f"Input file `{path}` is not valid `{encoding}` "
                f"(byte offset {exc.start})."
            ),
            hint="Pass the file's actual encoding with `--encoding`.",
        ) from exc

    return Document(text=text, locale=locale, encoding=encoding, source_path=path)
