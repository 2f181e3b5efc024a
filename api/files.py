"""File upload handling endpoints."""

from typing import List
from fastapi import APIRouter, UploadFile, File, Form

from api.deps import get_file_processor

router = APIRouter(prefix="/api/files", tags=["files"])


@router.post("/upload")
async def upload_files(
    files: List[UploadFile] = File(...),
    existing_size: int = Form(default=0),
):
    """
    Validate a batch of code files and return them ready for review.

    ``existing_size`` is the byte size of files already attached in the
    page; it counts against the aggregate ceiling. Files are read one at a
    time, in the order they were selected.
    """
    processor = get_file_processor()

    batch = []
    for file in files:
        content = await file.read()
        batch.append((file.filename or "unknown", content))

    result = processor.process_batch(batch, existing_size=existing_size)
    for error in result.errors:
        print(f"[FILES] Rejected {error['filename']}: {error['error']}")

    return result.to_dict()
