"""
Zip archive writer for export entries.

Entries are written with a fixed timestamp so that identical entry
sequences give identical archives.
"""

import zipfile
from typing import BinaryIO, Iterable, Iterator

from core.errors import TransportError
from core.models import ExportEntry

ZIP_DATE_TIME = (1980, 1, 1, 0, 0, 0)


class _ChunkSink:
    """Write-only, unseekable buffer drained after every entry."""

    def __init__(self):
        self._chunks: list[bytes] = []

    def write(self, data) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


def _zip_info(name: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(name, date_time=ZIP_DATE_TIME)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    return info


def _write_entry(zf: zipfile.ZipFile, entry: ExportEntry) -> None:
    name, contents = entry
    try:
        zf.writestr(_zip_info(name), contents)
    except (OSError, ValueError, TypeError, zipfile.LargeZipFile) as e:
        raise TransportError(f"Failed to write archive entry {name}: {e}") from e


def _finalize(zf: zipfile.ZipFile) -> None:
    try:
        zf.close()
    except (OSError, ValueError) as e:
        raise TransportError(f"Failed to finalize archive: {e}") from e


def iter_zip(entries: Iterable[ExportEntry]) -> Iterator[bytes]:
    """
    Stream a zip archive built from entries.

    Yields the compressed bytes of each entry as soon as it is written, then
    the central directory. Closing the generator early abandons the archive
    and closes the entry source.
    """
    sink = _ChunkSink()
    zf = zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_DEFLATED)
    try:
        for entry in entries:
            _write_entry(zf, entry)
            chunk = sink.drain()
            if chunk:
                yield chunk
        _finalize(zf)
        yield sink.drain()
    finally:
        close = getattr(entries, "close", None)
        if close is not None:
            close()


def write_zip(entries: Iterable[ExportEntry], fileobj: BinaryIO) -> list[str]:
    """
    Write a zip archive built from entries to a binary file object.

    Returns:
        Names of the entries written, in order

    Raises:
        TransportError: writing to fileobj failed; the archive is incomplete
    """
    names = []
    zf = zipfile.ZipFile(fileobj, mode="w", compression=zipfile.ZIP_DEFLATED)
    for entry in entries:
        _write_entry(zf, entry)
        names.append(entry[0])
    _finalize(zf)
    return names
