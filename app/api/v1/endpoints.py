import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from starlette.datastructures import UploadFile

from app.config import settings
from app.exceptions import BatchInputError
from app.models.schemas import BatchRequest, BatchResponse, BatchResultItem, DetectionResult
from app.services.batch_csv import find_url_column, parse_csv, render_results_csv
from app.services.detector import Detector

router = APIRouter()
logger = logging.getLogger("API_Endpoint")

_detector = Detector()


def get_detector() -> Detector:
    return _detector


def _check_batch_size(count: int):
    if count > settings.MAX_BATCH_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"Batch too large. Max {settings.MAX_BATCH_SIZE} rows per request. Split your CSV into chunks.",
        )


@router.get("/detect", response_model=DetectionResult)
async def detect(url: Optional[str] = None, detector: Detector = Depends(get_detector)):
    if not url or not url.strip():
        raise HTTPException(status_code=400, detail="Missing ?url= parameter")
    return await detector.detect(url)


@router.post("/batch")
async def batch(request: Request, detector: Detector = Depends(get_detector)):
    """
    Accepts either a CSV upload (multipart 'file' + optional 'url_column')
    answered with a CSV, or a JSON body {"urls": [...]} answered with JSON.
    """
    content_type = request.headers.get("content-type", "")

    if "multipart/form-data" in content_type:
        form = await request.form()
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            raise HTTPException(status_code=400, detail="Expected a 'file' field in the form")

        text = (await upload.read()).decode("utf-8-sig", errors="replace")
        headers, rows = parse_csv(text)
        if not rows:
            raise HTTPException(status_code=400, detail="CSV has no data rows")
        try:
            url_column = find_url_column(headers, str(form.get("url_column") or ""))
        except BatchInputError as e:
            raise HTTPException(status_code=400, detail=e.message)
        _check_batch_size(len(rows))

        logger.info(f"📄 CSV batch: {len(rows)} rows, URL column '{url_column}'")
        results = await detector.detect_many([row.get(url_column, "") for row in rows])
        return Response(
            content=render_results_csv(headers, rows, results),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="results.csv"'},
        )

    try:
        body = BatchRequest.model_validate(await request.json())
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not body.urls:
        raise HTTPException(status_code=400, detail="Expected { urls: string[] } in JSON body")
    _check_batch_size(len(body.urls))

    results = await detector.detect_many(body.urls)
    return BatchResponse(results=[
        BatchResultItem(**r.model_dump(), original_row={"url": u})
        for u, r in zip(body.urls, results)
    ])
