"""
REST endpoints for driving the frame pipeline.

A client posts frames one at a time; each upload is one tick. Commands
(snapshot toggle, filter select, thresholds) are queued and take effect on
the next posted frame.
"""
from typing import Optional
import logging

import cv2
import numpy as np
from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse, Response

from framelab.capture import bgr_to_rgba, rgba_to_bgr
from framelab.config import Settings
from framelab.models import FaceFilterMode, ThresholdUpdate
from framelab.pipeline import OUTPUT_NAMES, FrameProcessor

router = APIRouter()
settings = Settings()
logger = logging.getLogger(__name__)

_processor: Optional[FrameProcessor] = None


def get_processor() -> FrameProcessor:
    global _processor
    if _processor is None:
        _processor = FrameProcessor(settings)
    return _processor


@router.post("/frame")
async def post_frame(file: UploadFile = File(...)):
    """
    Decode an uploaded image and run one tick on it.

    Args:
        file: Uploaded image (any format OpenCV can decode).

    Returns:
        JSONResponse: Tick summary (motion, face box, mode).
    """
    data = await file.read()
    img = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR) if data else None
    if img is None:
        logger.warning(f"[api] could not decode upload filename={file.filename}")
        raise HTTPException(status_code=400, detail="Could not decode image")

    frame = bgr_to_rgba(img, settings.capture_size)
    try:
        out = get_processor().process(frame)
    except Exception as e:
        logger.exception("[api] tick failed")
        raise HTTPException(status_code=500, detail=str(e))
    logger.debug(f"[api] /frame tick={out.tick} motion={out.motion.level:.4f}")
    return JSONResponse(out.summary().model_dump(mode="json"))


@router.post("/snapshot/toggle")
async def snapshot_toggle():
    get_processor().toggle_snapshot()
    return {"status": "queued"}


@router.post("/filter/{mode}")
async def select_filter(mode: FaceFilterMode):
    get_processor().select_filter(mode)
    return {"status": "queued", "mode": mode.value}


@router.put("/thresholds")
async def put_thresholds(update: ThresholdUpdate):
    get_processor().set_thresholds(**update.model_dump(exclude_none=True))
    return {"status": "queued", "thresholds": update.model_dump(exclude_none=True)}


@router.get("/status")
async def status():
    return JSONResponse(get_processor().status().model_dump(mode="json"))


@router.get("/outputs/{name}")
async def get_output(name: str):
    """
    PNG of one published frame from the last tick.

    Names: the kernel outputs plus "snapshot" and "filtered_face".
    """
    if name not in OUTPUT_NAMES and name not in ("snapshot", "filtered_face"):
        raise HTTPException(status_code=404, detail=f"Unknown output: {name}")
    last = get_processor().last_outputs
    img = last.frame(name) if last is not None else None
    if img is None:
        raise HTTPException(status_code=404, detail=f"Output not available: {name}")
    ok, buf = cv2.imencode(".png", rgba_to_bgr(img))
    if not ok:
        raise HTTPException(status_code=500, detail="PNG encoding failed")
    return Response(content=buf.tobytes(), media_type="image/png")
