import asyncio
import logging
import threading
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.data.sources import PLAGIARISM_SOURCES
from app.dependencies.auth import verify_token
from app.schemas.plagiarism_schemas import DetectionResult, PlagiarismCheckRequest
from app.schemas.sources_schemas import SourceListing
from app.utils.detection import EmptyTextError, TextTooLongError, run_detection

router = APIRouter(prefix="/plagiarism", tags=["plagiarism"])

logger = logging.getLogger("plagiarism_api")


@router.post("/check", response_model=DetectionResult)
async def check_plagiarism(
    payload: PlagiarismCheckRequest,
    current_user=Depends(verify_token),
):
    if not payload.text or not payload.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")

    logger.info(f"🔍 Overlap check requested by {current_user.get('sub', 'unknown')} ({len(payload.text)} chars)")

    cancel_event = threading.Event()
    # Cancelling the request ends the await at once; the worker stops when it sees the event.
    try:
        return await asyncio.to_thread(run_detection, payload.text, cancel_event=cancel_event)
    except asyncio.CancelledError:
        cancel_event.set()
        raise
    except EmptyTextError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TextTooLongError as e:
        raise HTTPException(status_code=413, detail=str(e))


@router.get("/sources", response_model=List[SourceListing])
async def list_sources(current_user=Depends(verify_token)):
    return [SourceListing(id=s.id, title=s.title, url=s.url) for s in PLAGIARISM_SOURCES]
