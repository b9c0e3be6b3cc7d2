from pydantic import BaseModel


class AccentResult(BaseModel):
    accent: str = ""
    confidence: str = ""
    explanation: str = ""
    raw: str = ""


class URLPayload(BaseModel):
    videoUrl: str = ""
