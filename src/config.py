# src/config.py

import os

from dotenv import load_dotenv

load_dotenv()

LEAGUE_API_BASE_URL = os.environ.get("LEAGUE_API_BASE_URL", "http://localhost:5000/api").rstrip("/")
LEAGUE_LOG_LEVEL = os.environ.get("LEAGUE_LOG_LEVEL", "INFO").upper()

try:
    LEAGUE_API_TIMEOUT_SECONDS = float(os.environ.get("LEAGUE_API_TIMEOUT_SECONDS", "15"))
except ValueError:
    LEAGUE_API_TIMEOUT_SECONDS = 15.0

# Format text containing this marker counts as casual; everything else is competitive.
CASUAL_MARKER = "casual"
CASUAL_FORMAT_LABEL = "CASUAL"
COMPETITIVE_FORMAT_LABEL = "CEDH"

UNKNOWN_LABEL = "Unknown"
TIE_WINNER_LABEL = "Tie"
EMPTY_CELL = "—"

MIN_SEATS = 2
MAX_SEATS = 4
