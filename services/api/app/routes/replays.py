"""Replay upload routes.

Responsibilities:
- single-file upload (`/parse-replay`): a `.slp` replay or a `.zip` of replays
- batch upload (`/parse-replays`): up to `max_files` files, failures reported per file

Uploads are buffered in memory (bounded by `max_upload_bytes`), written to a temp
file and decoded by the replay parser. Handlers are sync functions: decoding is
CPU-bound and FastAPI runs sync handlers in its worker threadpool.
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from ..replay.archive import ArchiveError
from ..replay.parser import ReplayParseError
from ..settings import Settings, get_settings
from ..uploads import (
    UploadError,
    is_archive_name,
    is_replay_name,
    parse_archive,
    parse_batch,
    parse_replay_bytes,
    read_upload,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["replays"])


@router.post("/parse-replay")
def parse_replay(
    replay_file: UploadFile | None = File(default=None, alias="replayFile"),
    settings: Settings = Depends(get_settings),
):
    """Parse one uploaded replay (or every replay in an uploaded zip).

    Args:
        replay_file: Multipart field `replayFile` holding a `.slp` or `.zip` file.
        settings: API settings (injected).

    Returns:
        dict: For a `.slp` upload, the ReplayData (`metadata`, `settings`, `stats`).
        For a `.zip` upload, `{"results": [{"filename", "parsed"} | {"filename", "error"}]}`.

    Raises:
        HTTPException: 400 if no file was sent, the extension is not accepted, the
            file exceeds the size cap or the archive is unusable; 500 if the replay
            cannot be decoded.
    """
    if replay_file is None or not replay_file.filename:
        raise HTTPException(status_code=400, detail="No replay file uploaded")

    name = replay_file.filename
    if not (is_replay_name(name) or is_archive_name(name)):
        raise HTTPException(status_code=400, detail="Only .slp or .zip files are accepted")

    try:
        data = read_upload(replay_file, settings.max_upload_bytes)
    except UploadError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if is_archive_name(name):
        try:
            results = parse_archive(data, settings.max_upload_bytes)
        except ArchiveError:
            logger.warning("rejected unreadable archive %s", name)
            raise HTTPException(status_code=400, detail="Invalid zip archive")
        except UploadError as e:
            raise HTTPException(status_code=e.status_code, detail=e.message)
        logger.info("parsed archive %s with %d replay(s)", name, len(results))
        return {"results": results}

    try:
        replay = parse_replay_bytes(data, name)
    except ReplayParseError:
        logger.exception("error parsing replay %s", name)
        raise HTTPException(status_code=500, detail="Error parsing replay file")

    logger.info("parsed replay %s", name)
    return replay


@router.post("/parse-replays")
def parse_replays(
    replay_files: list[UploadFile] | None = File(default=None, alias="replayFiles"),
    settings: Settings = Depends(get_settings),
):
    """Parse a batch of uploaded replays.

    Every file is attempted; files that cannot be read or decoded are reported by
    name in `errors` instead of failing the request.

    Returns:
        dict: `{"results": [...], "errors": [filename, ...], "parsed": <int>}`.

    Raises:
        HTTPException: 400 if no files were sent or more than `max_files` were sent.
    """
    if not replay_files:
        raise HTTPException(status_code=400, detail="No replay files uploaded")

    if len(replay_files) > settings.max_files:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files. You can upload a maximum of {settings.max_files} files",
        )

    files = []
    for upload in replay_files:
        name = upload.filename or ""
        try:
            files.append((name, read_upload(upload, settings.max_upload_bytes)))
        except UploadError as e:
            files.append((name, e))

    return parse_batch(files, settings.max_upload_bytes)
