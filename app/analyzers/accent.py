# app/analyzers/accent.py
# Classificazione dell'accento inglese tramite Generative Language API (Gemini).

from __future__ import annotations
import base64
import json
import logging
import re
from typing import Any, Dict, Optional

import requests

from app import config
from app.errors import AnalysisError
from app.utils.segments import MediaBuffer
from models.schema import AccentResult

logger = logging.getLogger(__name__)

PROMPT = (
    "Given the following video, answer:\n"
    "1. What is the speaker's English accent? (e.g., British, American, Australian, etc.)\n"
    "2. What is your confidence in this classification (0-100%)?\n"
    "3. Give a short summary or explanation for your answer.\n"
    "Respond in JSON with keys: accent, confidence, explanation."
)

JSON_BLOCK_RX = re.compile(r"```json\s*([\s\S]*?)```", re.I)


def build_payload(data: bytes, mime_type: str) -> Dict[str, Any]:
    return {
        "contents": [{
            "parts": [
                {"inline_data": {"mime_type": mime_type,
                                 "data": base64.b64encode(data).decode("ascii")}},
                {"text": PROMPT},
            ],
        }],
    }


def _reply_text(data: Dict[str, Any]) -> str:
    try:
        return data["candidates"][0]["content"]["parts"][0].get("text") or ""
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""


def parse_reply(text: str) -> AccentResult:
    """
    The model is asked for JSON but often wraps it in a ```json fence or
    answers in prose. Prose becomes the explanation.
    """
    m = JSON_BLOCK_RX.search(text)
    candidate = m.group(1) if m else text
    try:
        obj = json.loads(candidate)
    except ValueError:
        logger.info("reply is not JSON, using raw text as explanation")
        return AccentResult(explanation=text, raw=text)
    if not isinstance(obj, dict):
        return AccentResult(explanation=text, raw=text)

    def _s(v: Optional[Any]) -> str:
        return "" if v is None else str(v)

    return AccentResult(
        accent=_s(obj.get("accent")),
        confidence=_s(obj.get("confidence")),
        explanation=_s(obj.get("explanation")),
        raw=text,
    )


def analyze_accent(buf: MediaBuffer) -> AccentResult:
    if not config.GEMINI_API_KEY:
        raise AnalysisError("GEMINI_API_KEY is not configured")

    url = f"{config.GEMINI_API_URL}/{config.GEMINI_MODEL}:generateContent"
    payload = build_payload(buf.data, buf.mime_type)
    logger.debug("sending %d bytes (%s) to %s", len(buf), buf.mime_type, config.GEMINI_MODEL)
    try:
        r = requests.post(
            url,
            params={"key": config.GEMINI_API_KEY},
            headers={"Content-Type": "application/json"},
            json=payload,
            timeout=config.ANALYSIS_TIMEOUT,
        )
    except requests.RequestException as e:
        raise AnalysisError(f"analysis request failed: {e}") from e
    if r.status_code >= 400:
        raise AnalysisError(f"analysis service returned HTTP {r.status_code}: {(r.text or '')[:300]}")

    try:
        data = r.json() if r.content else {}
    except ValueError as e:
        raise AnalysisError("analysis service returned non-JSON") from e
    text = _reply_text(data)
    logger.debug("model reply: %s", text[:1000])
    return parse_reply(text)
