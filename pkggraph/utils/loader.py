"""Streaming reader for package-registry dumps.

A dump is a JSON array of package objects::

    [
      {"name": "left-pad",
       "versions": {"1.3.0": {"timestamp": "2018-04-05T...",
                              "dependencies": {}}}},
      ...
    ]

Full npm dumps hold millions of packages, so the file is read in chunks and
decoded one package at a time instead of loading the whole document.
Concatenated or newline-delimited package objects (no surrounding array)
are accepted too.

Any structural problem (unreadable file, broken JSON, a record of the
wrong shape) raises RegistryLoadError and ends the run.
"""

import json
import re
from collections.abc import Iterator
from pathlib import Path
from typing import IO, Any

from pydantic import ValidationError

from pkggraph.errors import RegistryLoadError
from pkggraph.logging import logger
from pkggraph.models.registry import PackageRecord

CHUNK_SIZE = 1 << 16

_WHITESPACE = re.compile(r"\s*")

# A decode error this close to the end of the buffer may be a token cut by
# the chunk boundary ("fals", "\u00", "1e")
_SPLIT_TAIL = 6


class _StreamBuffer:
    """Text buffer over a stream that is refilled on demand."""

    def __init__(self, stream: IO[str], chunk_size: int, source: str) -> None:
        self._stream = stream
        self._chunk_size = chunk_size
        self.source = source
        self.text = ""
        self.pos = 0
        self.eof = False

    def fill(self, grow: bool = False) -> bool:
        """Append the next chunk, dropping consumed text. False at EOF.

        With ``grow`` the read is at least as long as the pending text, so a
        value spanning many chunks is re-decoded a logarithmic number of times.
        """
        if self.eof:
            return False
        size = self._chunk_size
        if grow:
            size = max(size, len(self.text) - self.pos)
        try:
            chunk = self._stream.read(size)
        except (OSError, UnicodeDecodeError) as e:
            raise RegistryLoadError(f"Failed reading {self.source}: {e}") from e
        if not chunk:
            self.eof = True
            return False
        self.text = self.text[self.pos:] + chunk
        self.pos = 0
        return True

    def peek(self) -> str | None:
        """Next non-whitespace character without consuming it (None at EOF)."""
        while True:
            self.pos = _WHITESPACE.match(self.text, self.pos).end()
            if self.pos < len(self.text):
                return self.text[self.pos]
            if not self.fill():
                return None

    def decode(self, decoder: json.JSONDecoder) -> Any:
        """Decode one JSON value at the current position."""
        while True:
            try:
                value, end = decoder.raw_decode(self.text, self.pos)
            except json.JSONDecodeError as e:
                if self._truncated(e) and self.fill(grow=True):
                    continue
                raise RegistryLoadError(f"Invalid JSON in {self.source}: {e}") from e
            if end == len(self.text) and not self.eof and isinstance(value, int | float):
                # A number at the buffer edge may continue in the next chunk
                if self.fill():
                    continue
            self.pos = end
            return value

    def _truncated(self, error: json.JSONDecodeError) -> bool:
        """True if the error can be explained by the buffer ending early."""
        if error.msg.startswith("Unterminated string"):
            return True
        return len(self.text) - error.pos <= _SPLIT_TAIL


def _to_record(value: Any, position: int, source: str) -> PackageRecord:
    if not isinstance(value, dict):
        raise RegistryLoadError(
            f"Entry {position} in {source} is {type(value).__name__}, expected an object"
        )
    try:
        return PackageRecord.model_validate(value)
    except ValidationError as e:
        name = value.get("name", "?")
        raise RegistryLoadError(f"Entry {position} ({name!r}) in {source} is malformed: {e}") from e


def _iter_stream(stream: IO[str], chunk_size: int, source: str) -> Iterator[PackageRecord]:
    buf = _StreamBuffer(stream, chunk_size, source)
    decoder = json.JSONDecoder()
    count = 0

    first = buf.peek()
    if first is None:
        raise RegistryLoadError(f"Registry dump {source} is empty")

    if first == "{":
        # Concatenated / newline-delimited objects
        while buf.peek() is not None:
            yield _to_record(buf.decode(decoder), count, source)
            count += 1
        logger.info("  Read %d packages from %s", count, source)
        return

    if first != "[":
        raise RegistryLoadError(f"Registry dump {source} must start with '[' or '{{', got {first!r}")

    buf.pos += 1
    if buf.peek() == "]":
        buf.pos += 1
    else:
        while True:
            if buf.peek() is None:
                raise RegistryLoadError(f"Registry dump {source} ended inside the array")
            yield _to_record(buf.decode(decoder), count, source)
            count += 1

            delimiter = buf.peek()
            if delimiter == ",":
                buf.pos += 1
            elif delimiter == "]":
                buf.pos += 1
                break
            elif delimiter is None:
                raise RegistryLoadError(f"Registry dump {source} is missing its closing ']'")
            else:
                raise RegistryLoadError(
                    f"Expected ',' or ']' after entry {count - 1} in {source}, got {delimiter!r}"
                )

    trailing = buf.peek()
    if trailing is not None:
        raise RegistryLoadError(f"Unexpected data after the closing ']' in {source}")

    logger.info("  Read %d packages from %s", count, source)


def iter_packages(
    source: str | Path | IO[str],
    chunk_size: int = CHUNK_SIZE,
) -> Iterator[PackageRecord]:
    """Stream PackageRecords out of a registry dump.

    Args:
        source: Path to the dump, or an open text stream.
        chunk_size: Characters read per chunk.

    Yields:
        One PackageRecord per package object, in file order.

    Raises:
        RegistryLoadError: If the dump cannot be opened or decoded.
    """
    if isinstance(source, str | Path):
        path = Path(source)
        try:
            stream = path.open("r", encoding="utf-8")
        except OSError as e:
            raise RegistryLoadError(f"Cannot open registry dump {path}: {e}") from e
        with stream:
            yield from _iter_stream(stream, chunk_size, str(path))
    else:
        yield from _iter_stream(source, chunk_size, getattr(source, "name", "<stream>"))


def load_packages(source: str | Path | IO[str]) -> list[PackageRecord]:
    """Read an entire registry dump into a list of PackageRecords."""
    return list(iter_packages(source))
