"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 200

GENERIC_ERROR_MESSAGE = "Something went wrong"
PAYMENT_AMOUNT_ERROR = "Amount must be greater than 0"

CURRENCY_LABEL = "Rs."
DEFAULT_API_BASE_URL = "http://localhost:5000/api"
DEFAULT_API_TIMEOUT = 10
