"""Zip archive handling for batched replay uploads.

Browsers zip replays before upload to save bandwidth; the API unpacks them one
entry at a time and hands each replay to the parser before reading the next, so
memory stays bounded by the largest single replay rather than the archive's
inflated size.

Entry headers are checked before anything is decompressed: only `.slp` entries
are read, and each must use a supported compression method, be unencrypted and
declare a size within the cap (`zipfile` never inflates past the declared size).
"""

import io
import lzma
import posixpath
import zipfile
import zlib
from typing import Iterator

REPLAY_EXTENSION = ".slp"

_SUPPORTED_METHODS = {
    zipfile.ZIP_STORED,
    zipfile.ZIP_DEFLATED,
    zipfile.ZIP_BZIP2,
    zipfile.ZIP_LZMA,
}
_ENCRYPTED_FLAG = 0x1

# raised by zipfile and the decompressors on damaged or unreadable entries
_READ_ERRORS = (
    zipfile.BadZipFile,
    EOFError,
    OSError,
    RuntimeError,
    NotImplementedError,
    zlib.error,
    lzma.LZMAError,
)


class ArchiveError(Exception):
    """Raised when an uploaded archive cannot be read."""


def is_replay_entry(info: zipfile.ZipInfo) -> bool:
    """True for `.slp` files, excluding directories and macOS resource forks."""
    if info.is_dir() or info.filename.startswith("__MACOSX/"):
        return False
    base = posixpath.basename(info.filename)
    return not base.startswith("._") and base.endswith(REPLAY_EXTENSION)


def _check_entry(info: zipfile.ZipInfo, max_entry_bytes: int | None) -> None:
    if info.flag_bits & _ENCRYPTED_FLAG:
        raise ArchiveError(f"{info.filename} is encrypted")
    if info.compress_type not in _SUPPORTED_METHODS:
        raise ArchiveError(f"{info.filename} uses an unsupported compression method")
    if max_entry_bytes is not None and info.file_size > max_entry_bytes:
        raise ArchiveError(
            f"{info.filename} is too large. Maximum size: {max_entry_bytes // (1024 * 1024)}MB"
        )


def replay_entries(buffer: bytes, max_entry_bytes: int | None = None) -> Iterator[tuple[str, bytes]]:
    """Yield `(entry_path, bytes)` for every replay in a zip archive.

    Entries are keyed by their full path inside the archive, so replays with the
    same file name in different folders are all returned. Every replay entry is
    validated before the first one is read.

    Args:
        buffer: Raw archive bytes.
        max_entry_bytes: Largest uncompressed replay accepted (None for no cap).

    Raises:
        ArchiveError: If `buffer` is not a readable zip archive, or a replay entry
            is encrypted, compressed with an unsupported method, too large or
            damaged.
    """
    try:
        zf = zipfile.ZipFile(io.BytesIO(buffer))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError) as e:
        raise ArchiveError(f"Invalid zip archive: {e}") from e

    with zf:
        infos = [info for info in zf.infolist() if is_replay_entry(info)]
        for info in infos:
            _check_entry(info, max_entry_bytes)

        for info in infos:
            try:
                data = zf.read(info)
            except _READ_ERRORS as e:
                raise ArchiveError(f"Could not read {info.filename}: {e}") from e
            yield info.filename, data
