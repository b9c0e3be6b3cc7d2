# config.py
import os
from dataclasses import dataclass

# ----- General -----
APP_NAME = "English Accent Analyzer"
APP_VERSION = os.getenv("APP_VERSION", "0.3.0")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS
CORS_ALLOW_ORIGINS = os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")

# Bytes
MB = 1024 * 1024

# Retrieval policy (fixed, not read from ENV)
MAX_SEGMENTS = 5
MAX_TOTAL_BYTES = 20 * MB
MIN_VARIANT_BANDWIDTH = 100_000      # bit/s, inclusive
MAX_VARIANT_BANDWIDTH = 1_500_000    # bit/s, inclusive


@dataclass(frozen=True)
class DownloadBudget:
    max_segments: int = MAX_SEGMENTS
    max_total_bytes: int = MAX_TOTAL_BYTES
    min_variant_bandwidth: int = MIN_VARIANT_BANDWIDTH
    max_variant_bandwidth: int = MAX_VARIANT_BANDWIDTH


DEFAULT_BUDGET = DownloadBudget()

# HTTP
DOWNLOAD_TIMEOUT = int(os.getenv("DOWNLOAD_TIMEOUT", 25))                # seconds
PLATFORM_ORIGIN = os.getenv("PLATFORM_ORIGIN", "https://www.loom.com")
BROWSER_UA = os.getenv(
    "BROWSER_UA",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0 Safari/537.36",
)

# Analysis (Generative Language API)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-pro-latest")
GEMINI_API_URL = os.getenv(
    "GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta/models"
)
ANALYSIS_TIMEOUT = int(os.getenv("ANALYSIS_TIMEOUT", 120))               # seconds
