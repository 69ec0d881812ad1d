"""Header-driven delimited table reader with encoding sniffing."""

from __future__ import annotations

import csv
import io
import re
from pathlib import Path
from typing import BinaryIO, Iterator

from charset_normalizer import from_bytes

from medcorpus.collection.errors import MalformedResourceError

_SNIFF_BYTES = 64 * 1024
_BOM = "\ufeff"
_NON_ASCII_RE = re.compile(rb"[\x80-\xff]")

# Long author lists and abstracts exceed the csv module's default field limit.
csv.field_size_limit(2**31 - 1)


def read_sniff_sample(handle: BinaryIO) -> bytes:
    """Return up to 64 KiB starting at the first non-ASCII byte.

    The handle is scanned chunk by chunk and rewound afterwards. A pure-ASCII
    table returns its first chunk.
    """

    first = handle.read(_SNIFF_BYTES)
    chunk = first
    offset = 0
    try:
        while chunk:
            match = _NON_ASCII_RE.search(chunk)
            if match is not None:
                handle.seek(offset + match.start())
                return handle.read(_SNIFF_BYTES)
            offset += len(chunk)
            chunk = handle.read(_SNIFF_BYTES)
        return first
    finally:
        handle.seek(0)


def detect_encoding(sample: bytes) -> str:
    """Pick a decoder for a table from a sniffed sample."""

    try:
        sample.decode("utf-8")
        return "utf-8-sig"
    except UnicodeDecodeError as exc:
        # A multi-byte sequence cut off by the sniff window.
        if exc.reason == "unexpected end of data":
            return "utf-8-sig"

    best = from_bytes(sample).best()
    if best and best.encoding:
        name = best.encoding.lower()
        if name in {"windows-1251", "cp1251"}:
            return "cp1251"
        if name in {"ascii", "utf_8", "utf-8"}:
            return "utf-8-sig"
        return best.encoding

    for fallback in ("cp1252", "latin-1"):
        try:
            sample.decode(fallback)
            return fallback
        except UnicodeDecodeError:
            continue
    raise ValueError("Could not detect table encoding")


def _normalize_header(name: str) -> str:
    return name.replace(_BOM, "").strip().lower()


class TableReader:
    """Stream the rows of one table as trimmed, lower-cased field maps.

    The reader owns its file handle until :meth:`close` is called.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        try:
            handle = open(path, "rb")
        except OSError as exc:
            raise MalformedResourceError(path, f"Failed to open table: {exc}") from exc

        try:
            sample = read_sniff_sample(handle)
            encoding = detect_encoding(sample)
        except (OSError, ValueError) as exc:
            handle.close()
            raise MalformedResourceError(path, f"Failed to sniff table encoding: {exc}") from exc

        self._stream = io.TextIOWrapper(handle, encoding=encoding, newline="")
        self._reader = csv.reader(self._stream)
        self._header: list[str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._stream.closed

    @property
    def header(self) -> list[str]:
        """Column names, read lazily from the first line."""

        if self._header is None:
            first = self._next_raw_row()
            self._header = [_normalize_header(name) for name in first] if first is not None else []
        return list(self._header)

    def next_row(self) -> dict[str, str] | None:
        """Return the next row, or ``None`` when the table is exhausted."""

        header = self.header
        if not header:
            return None

        values = self._next_raw_row()
        if values is None:
            return None

        row = {name: "" for name in header}
        for name, value in zip(header, values):
            row[name] = value.strip()
        return row

    def __iter__(self) -> Iterator[dict[str, str]]:
        while True:
            row = self.next_row()
            if row is None:
                return
            yield row

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> "TableReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _next_raw_row(self) -> list[str] | None:
        try:
            while True:
                values = next(self._reader)
                if values:
                    return values
        except StopIteration:
            return None
        except (csv.Error, UnicodeDecodeError) as exc:
            raise MalformedResourceError(self._path, f"Failed to read table row: {exc}") from exc
