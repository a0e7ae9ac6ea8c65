import os
from dotenv import load_dotenv

load_dotenv()

# === BYBIT API ===
BYBIT_API_URL = os.getenv("BYBIT_API_URL", "https://api.bybit.com")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))

INSTRUMENTS_PATH = "/v5/market/instruments-info"
TICKERS_PATH = "/v5/market/tickers"

# === CATEGORIES ===
LINEAR = 'linear'
INVERSE = 'inverse'
CATEGORIES = [LINEAR, INVERSE]  # linear first: it wins on duplicates

CATEGORY_LABELS = {
    LINEAR: 'USDT Perpetual',
    INVERSE: 'Inverse Perpetual',
}
INVERSE_SUFFIX = '.I'

DEFAULT_MIN_LEVERAGE = 1.0
DEFAULT_MAX_LEVERAGE = 100.0

# === POSITION ===
LONG = 'Long'
SHORT = 'Short'
POSITION_TYPES = [LONG, SHORT]

TAKER_FEE_RATE = 0.0006  # 0.06% taker, charged on entry and exit
MAX_TARGETS = 3

# === SEARCH ===
SEARCH_MIN_CHARS = 2
SEARCH_DEBOUNCE_SECONDS = 0.5
SEARCH_RESULTS_LIMIT = 12
QUOTE_SUFFIXES = ('USDT', 'USD')

# === TRENDING ===
TRENDING_REFRESH_SECONDS = 10.0
TRENDING_TICK_SECONDS = 0.1
TRENDING_LIMIT = 8
TRENDING_MIN_VOLUME = 1_000_000
HOT_CHANGE_PERCENT = 5.0

# === LIVE PRICE ===
PRICE_POLL_SECONDS = 3.0
PRICE_FLASH_SECONDS = 2.0

# === SERVER ===
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))
APP_TITLE = "Bybit Leverage Calculator"
