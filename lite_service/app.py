#!/usr/bin/env python3
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
import io, json, logging, math, time
from typing import Any, AsyncIterator, List

import ijson

from lite_service.config import ServiceConfig
from partial_json.adapters import parse_stream
from partial_json.scanner import NOTHING, parse

config = ServiceConfig.from_env()
app = FastAPI(title="partial-json-lite")
logger = logging.getLogger(__name__)

request_counter = Counter("json_requests_total", "Total JSON requests", ["endpoint"])
snapshot_counter = Counter("json_snapshots_total", "Snapshots streamed to clients")
process_duration = Histogram("json_process_seconds", "Time spent processing")


def is_complete_document(body: bytes) -> bool:
    """True when ``body`` holds exactly one well-formed JSON document."""
    try:
        for _ in ijson.items(io.BytesIO(body), ""):
            pass
    except (ijson.JSONError, ValueError, ArithmeticError):
        return False
    return True


def json_safe(value: Any) -> Any:
    """Replace non-finite floats (from literals like ``1e999``) with ``None``."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: json_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [json_safe(item) for item in value]
    return value


def _too_large() -> HTTPException:
    logger.warning("Rejected body over %d bytes", config.max_body_bytes)
    return HTTPException(status_code=413, detail="payload too large")


def _check_length(request: Request):
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > config.max_body_bytes:
        raise _too_large()


async def _read_chunks(request: Request) -> List[bytes]:
    """Read the whole body, keeping the chunks as they arrived."""
    chunks = []
    received = 0
    async for chunk in request.stream():
        if not chunk:
            continue
        received += len(chunk)
        if received > config.max_body_bytes:
            raise _too_large()
        chunks.append(chunk)
    return chunks


@app.get("/health", tags=["ops"])
def health():
    return {"status": "healthy"}


@app.get("/metrics", tags=["ops"])
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.post("/parse", tags=["parse"])
async def parse_body(request: Request):
    request_counter.labels(endpoint="parse").inc()
    _check_length(request)
    body = b"".join(await _read_chunks(request))
    try:
        with process_duration.time():
            value = parse(body.decode("utf-8", errors="replace"), config.max_depth)
            complete = is_complete_document(body)
        extracted = value is not NOTHING
        return JSONResponse({
            "value": json_safe(value) if extracted else None,
            "extracted": extracted,
            "complete": complete,
        })
    except Exception as e:
        logger.error(f"parse failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/snapshots", tags=["parse"])
async def stream_snapshots(request: Request):
    """Answer with one NDJSON line per snapshot, one per received body chunk.

    The body is read before the response starts so oversized uploads still get
    a 413 and the response never competes with the body for ``receive()``.
    """
    request_counter.labels(endpoint="snapshots").inc()
    _check_length(request)
    chunks = await _read_chunks(request)

    async def replay() -> AsyncIterator[bytes]:
        for chunk in chunks:
            yield chunk

    async def ndjson() -> AsyncIterator[str]:
        start = time.perf_counter()
        lines = 0
        snapshots = parse_stream(replay(), errors="replace", max_depth=config.max_depth)
        async for snapshot in snapshots:
            snapshot_counter.inc()
            lines += 1
            yield json.dumps(json_safe(snapshot), allow_nan=False) + "\n"
        process_duration.observe(time.perf_counter() - start)
        logger.info("Streamed %d snapshots from %d chunks", lines, len(chunks))

    return StreamingResponse(ndjson(), media_type="application/x-ndjson")


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=config.log_level)
    uvicorn.run(app, host=config.host, port=config.port)
