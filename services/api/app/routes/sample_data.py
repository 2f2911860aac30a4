"""Sample replay routes.

A handful of demo replays ship with the web assets so first-time visitors can try
the viewer without their own files. The files themselves are served statically
under `/assets/slp-demo-data/` (see `main.py`); these routes list and parse them.
"""

import logging
import os

from fastapi import APIRouter, Depends, HTTPException, Query

from ..settings import Settings, get_settings
from ..uploads import REPLAY_EXTENSION, UploadError, parse_batch, select_replay_files

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sample-data"])


def _sample_files(settings: Settings) -> list[str]:
    directory = settings.sample_data_dir
    logger.info("listing sample replays in %s", directory)
    try:
        names = os.listdir(directory)
    except OSError:
        logger.exception("error listing sample files in %s", directory)
        raise HTTPException(status_code=500, detail="Failed to list sample files")
    return sorted(n for n in names if n.endswith(REPLAY_EXTENSION))


@router.get("/sample-data")
def list_sample_data(settings: Settings = Depends(get_settings)):
    """List the demo replay filenames.

    Returns:
        dict: `{"files": [...]}` sorted by name.

    Raises:
        HTTPException: 500 if the sample directory cannot be read.
    """
    return {"files": _sample_files(settings)}


@router.get("/sample-data/replays")
def parse_sample_data(
    limit: int | None = Query(default=None, ge=1),
    settings: Settings = Depends(get_settings),
):
    """Parse the first `limit` demo replays (default `sample_data_limit`).

    Returns:
        dict: Same shape as the batch upload response.

    Raises:
        HTTPException: 400 if `limit` exceeds `max_files`.
    """
    if limit is not None and limit > settings.max_files:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files. You can load a maximum of {settings.max_files} files",
        )
    names, truncated = select_replay_files(_sample_files(settings), limit or settings.sample_data_limit)
    if truncated:
        logger.info("sample replays limited to %d", len(names))

    files = []
    for name in names:
        path = os.path.join(settings.sample_data_dir, name)
        try:
            with open(path, "rb") as f:
                files.append((name, f.read()))
        except OSError as e:
            logger.warning("could not read sample replay %s: %s", path, e)
            files.append((name, UploadError(f"Failed to read {name}", status_code=500)))

    return parse_batch(files, settings.max_upload_bytes)
