"""Upload validation and buffering.

Each uploaded replay is buffered to a temporary `.slp` file, handed to the replay
parser, and the temporary file is removed whatever the outcome. Zip uploads are
unpacked one replay at a time and every replay inside is handled the same way.

Batch helpers never raise for a single bad file: failures are collected and
reported by filename so one corrupt replay does not sink a 100-file upload.
"""

import logging
import os
import tempfile

from fastapi import UploadFile

from .replay import parser
from .replay.archive import REPLAY_EXTENSION, ArchiveError, replay_entries

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = ".zip"

_CHUNK_SIZE = 64 * 1024


class UploadError(Exception):
    """An upload was rejected; carries the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def is_replay_name(name: str | None) -> bool:
    return bool(name) and name.endswith(REPLAY_EXTENSION)


def is_archive_name(name: str | None) -> bool:
    return bool(name) and name.lower().endswith(ARCHIVE_EXTENSION)


def select_replay_files(names: list[str], max_files: int) -> tuple[list[str], bool]:
    """Keep replay filenames in order, capped at `max_files`.

    Returns:
        tuple: `(selected_names, truncated)` where `truncated` is true when more than
        `max_files` replay files were offered.
    """
    replays = [n for n in names if is_replay_name(n)]
    return replays[:max_files], len(replays) > max_files


def read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an uploaded file into memory, enforcing the size cap.

    Raises:
        UploadError: If the file is larger than `max_bytes`.
    """
    chunks = []
    total = 0
    while True:
        chunk = upload.file.read(_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise UploadError(
                f"File too large. Maximum size: {max_bytes // (1024 * 1024)}MB"
            )
        chunks.append(chunk)
    return b"".join(chunks)


def parse_replay_bytes(data: bytes, name: str = "") -> dict:
    """Write replay bytes to a temp file and parse it.

    Raises:
        parser.ReplayParseError: If the replay cannot be decoded.
    """
    with tempfile.NamedTemporaryFile(suffix=REPLAY_EXTENSION, delete=False) as tmp:
        tmp.write(data)
        tmp_path = tmp.name

    try:
        return parser.parse_replay_file(tmp_path)
    finally:
        try:
            os.unlink(tmp_path)
        except OSError:
            logger.warning("could not remove temp file %s for %s", tmp_path, name)


def parse_archive(data: bytes, max_entry_bytes: int | None = None) -> list[dict]:
    """Parse every replay inside a zip archive, one entry at a time.

    Args:
        data: Raw archive bytes.
        max_entry_bytes: Largest uncompressed replay accepted.

    Returns:
        list[dict]: One `{"filename", "parsed"}` or `{"filename", "error"}` entry
        per replay, in archive order.

    Raises:
        ArchiveError: If the archive cannot be read.
        UploadError: If the archive holds no replay files.
    """
    results = []
    for name, payload in replay_entries(data, max_entry_bytes):
        try:
            results.append({"filename": name, "parsed": parse_replay_bytes(payload, name)})
        except parser.ReplayParseError as e:
            logger.warning("failed to parse %s from archive: %s", name, e)
            results.append({"filename": name, "error": str(e)})
    if not results:
        raise UploadError("No replay files found in archive")
    return results


def parse_batch(files: list[tuple[str, bytes | UploadError]], max_entry_bytes: int | None = None) -> dict:
    """Parse a batch of uploaded files, collecting per-file failures.

    Args:
        files: `(filename, data)` pairs; `data` may be an `UploadError` when the
            file was already rejected while reading (e.g. too large).
        max_entry_bytes: Cap applied to each replay inside uploaded archives.

    Returns:
        dict: `{"results": [...], "errors": [filename, ...], "parsed": n}`.
    """
    results = []
    errors = []

    def _fail(name, message):
        results.append({"filename": name, "error": message})
        errors.append(name)

    for name, data in files:
        if isinstance(data, UploadError):
            _fail(name, data.message)
        elif is_archive_name(name):
            try:
                entries = parse_archive(data, max_entry_bytes)
            except (ArchiveError, UploadError) as e:
                logger.warning("rejected archive %s: %s", name, e)
                _fail(name, str(e))
                continue
            for entry in entries:
                results.append(entry)
                if "error" in entry:
                    errors.append(entry["filename"])
        elif is_replay_name(name):
            try:
                results.append({"filename": name, "parsed": parse_replay_bytes(data, name)})
            except parser.ReplayParseError as e:
                logger.warning("failed to parse %s: %s", name, e)
                _fail(name, str(e))
        else:
            _fail(name, "Only .slp or .zip files are accepted")

    parsed = sum(1 for r in results if "parsed" in r)
    logger.info("batch parsed %d of %d replay(s), %d error(s)", parsed, len(results), len(errors))
    return {"results": results, "errors": errors, "parsed": parsed}
