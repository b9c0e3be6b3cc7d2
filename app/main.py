import asyncio
import logging
import mimetypes
import os
from typing import Optional

import uvicorn
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from app import config
from app.analyzers import accent
from app.errors import AnalysisError, PayloadTooLarge, RetrievalError
from app.utils.download import DEFAULT_MIME, download_video
from app.utils.segments import MediaBuffer, check_payload_size
from models.schema import AccentResult, URLPayload

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=config.APP_NAME, version=config.APP_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS, allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["*"],
)

TOO_LARGE = f"Video file too large for inline analysis (max {config.MAX_TOTAL_BYTES // config.MB}MB)"


@app.get("/healthz")
def healthz():
    return {"status": "ok", "version": config.APP_VERSION}


@app.get("/", response_class=HTMLResponse)
def index():
    return """
    <!doctype html>
    <html>
    <head>
      <meta charset="utf-8"/>
      <meta name="viewport" content="width=device-width, initial-scale=1"/>
      <title>English Accent Analyzer</title>
      <style>
        body { font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; margin: 40px; }
        form { display: grid; gap: 12px; max-width: 520px; }
        input, button { padding: 10px; font-size: 16px; }
        .hint { color: #555; }
      </style>
    </head>
    <body>
      <h1>English Accent Analyzer</h1>
      <p class="hint">Paste a <b>Loom</b> share link or a direct MP4 link, <i>or</i> upload a file (max 20MB).</p>
      <form action="/predict" method="post" enctype="multipart/form-data">
        <label>Video URL (Loom or MP4)
          <input type="url" name="url" placeholder="https://www.loom.com/share/...">
        </label>
        <div>or</div>
        <label>Video file
          <input type="file" name="file" accept="video/*">
        </label>
        <button type="submit">Analyze Accent</button>
      </form>
    </body>
    </html>
    """


async def _read_upload(file: UploadFile) -> MediaBuffer:
    buf = bytearray()
    while True:
        chunk = await file.read(1024 * 1024)
        if not chunk:
            break
        buf.extend(chunk)
        check_payload_size(len(buf), config.DEFAULT_BUDGET)
    if not buf:
        raise HTTPException(400, "Uploaded file is empty.")
    mime = file.content_type or ""
    if not mime.startswith("video/"):
        mime = mimetypes.guess_type(file.filename or "")[0] or DEFAULT_MIME
    return MediaBuffer(data=bytes(buf), chunk_count=1, mime_type=mime)


def _analyze_url(url: str) -> AccentResult:
    logger.info("analyze url=%s", url)
    try:
        buf = download_video(url, config.DEFAULT_BUDGET)
    except ValueError as e:
        raise HTTPException(400, str(e))
    except PayloadTooLarge as e:
        logger.info("rejected: %s", e)
        raise HTTPException(413, TOO_LARGE)
    except RetrievalError as e:
        logger.warning("retrieval failed (%s): %s", e.kind, e)
        raise HTTPException(502, "Failed to retrieve the video.")
    return _analyze_buffer(buf)


def _analyze_buffer(buf: MediaBuffer) -> AccentResult:
    try:
        return accent.analyze_accent(buf)
    except AnalysisError:
        logger.exception("accent analysis failed")
        raise HTTPException(500, "Failed to process video.")


# Contratto del client web: JSON {"videoUrl": "..."}
@app.post("/api/analyze", response_model=AccentResult)
def analyze(payload: URLPayload):
    if not payload.videoUrl:
        raise HTTPException(400, "Video URL is required")
    return _analyze_url(payload.videoUrl)


# Form: url *oppure* file
@app.post("/predict", response_model=AccentResult)
async def predict(url: Optional[str] = Form(default=None), file: Optional[UploadFile] = File(default=None)):
    if file is not None and not file.filename:
        file = None
    if not url and not file:
        raise HTTPException(400, "Provide either a 'url' or a 'file'.")
    if url and file:
        raise HTTPException(400, "Send either the URL or the file, not both.")
    if url:
        return await asyncio.to_thread(_analyze_url, url)
    try:
        buf = await _read_upload(file)
    except PayloadTooLarge:
        raise HTTPException(413, TOO_LARGE)
    return await asyncio.to_thread(_analyze_buffer, buf)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
