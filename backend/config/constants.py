# backend/config/constants.py

# -----------------------------
# PRODUCTS
# -----------------------------

DEFAULT_PRODUCT_IMAGE = "https://via.placeholder.com/400x300?text=No+Image"
LOW_STOCK_THRESHOLD = 10             # below this = "Low Stock"

# -----------------------------
# MARKETS
# -----------------------------

DEFAULT_MARKET_IMAGE = "https://via.placeholder.com/600x400?text=Market+Image"
DEFAULT_MARKET_COUNTRY = "The Gambia"
DEFAULT_OPERATING_HOURS = "Closed"

# -----------------------------
# PRICE SUBMISSIONS
# -----------------------------

AVERAGE_PRICE_WINDOW_DAYS = 30
RECENT_SUBMISSIONS_DAYS = 7
MAX_NOTES_LENGTH = 500

# -----------------------------
# LISTING
# -----------------------------

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# -----------------------------
# WORKERS
# -----------------------------

AUDIT_CLEANUP_INTERVAL_SECONDS = 60 * 60  # hourly
