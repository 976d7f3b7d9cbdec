"""
Export API endpoints
"""

from typing import AsyncIterator, Iterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from starlette.concurrency import iterate_in_threadpool

from core.archive import iter_zip
from core.exporter import ExportPackager
from backend.api.projects import get_project_store, get_image_store
from backend import config

router = APIRouter()


async def stream_archive(chunks: Iterator[bytes]) -> AsyncIterator[bytes]:
    """
    Relay archive chunks produced in a worker thread.

    The chunk generator is closed when the stream ends or is abandoned,
    so a disconnecting client releases the export's open readers.
    """
    try:
        async for chunk in iterate_in_threadpool(chunks):
            yield chunk
    finally:
        chunks.close()


@router.get("/{project_id}/export")
async def export_project(project_id: int):
    """Stream a zip with every image of the project and a labels.json manifest."""
    packager = ExportPackager(
        get_project_store(),
        get_image_store(),
        uploads_dir=str(config.UPLOADS_DIR),
        fetch_timeout=config.EXPORT_FETCH_TIMEOUT,
    )
    # Resolves the project before the response starts
    entries = packager.export_project(project_id)

    return StreamingResponse(
        stream_archive(iter_zip(entries)),
        media_type="application/zip",
        headers={"Content-Disposition": 'attachment; filename="project-export.zip"'},
    )
