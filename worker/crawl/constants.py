"""
Crawl constants: browser fingerprint, site selectors, timeouts.

Selectors target the record-lookup service's current markup; candidates in
each list are ordered by preference.
"""

from __future__ import annotations

# Browser identity (fixed so recovered sessions look like the original one)
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/123.0.0.0 Safari/537.36"
)
CONTEXT_VIEWPORT = {"width": 1280, "height": 720}
INTERACTIVE_VIEWPORT = {"width": 1920, "height": 1080}
LOCALE = "en-US"
ACCEPT_LANGUAGE = "en-US,en;q=0.9"
LAUNCH_ARGS = [
    "--disable-gpu",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--js-flags=--expose-gc",
]

# Search form
FIRST_NAME_INPUT = '//input[@id="first_name"]'
LAST_NAME_INPUT = '//input[@id="last_name"]'
STATE_DROPDOWN = '//select[@name="state" and @class="select_field"]'
SEARCH_BUTTON = (
    '//*[@id="post-9"]/div/div/section[1]/div/div/div/div[6]/div/div/form'
    "/table/tbody/tr[4]/td/center/input"
)

# Results table: fast fixed-position check, then the robust candidate list
TABLE_FIFTH_ROW_SELECTOR = "table tbody tr:nth-child(5)"
TABLE_FAST_ROW_SELECTOR = "table tbody tr"
TABLE_ROW_SELECTORS = [
    "table tbody tr",
    "table.result-table tbody tr",
    "table tr",
    ".result-table tr",
]
TABLE_CELL_SELECTOR = "td"

# Row cells (1-based column positions)
ROW_LINK_SELECTOR = "td:nth-child(1) a"
ROW_FIELD_SELECTORS = {
    "full_name": "td:nth-child(2)",
    "father_name": "td:nth-child(3)",
    "address": "td:nth-child(4)",
    "country": "td:nth-child(5)",
    "state": "td:nth-child(6)",
    "city": "td:nth-child(7)",
}
DETAIL_LINK_MARKER = "result"
VALUE_LINK_SELECTOR = 'a:has-text("Value")'

# Detail view price candidates, most specific first
PRICE_SELECTORS = [
    "b.pulse",
    ".pulse",
    'b:has-text("₹")',
    'b:has-text("Approx")',
    '*:has-text("₹")',
    'span:has-text("₹")',
    'div:has-text("Approx")',
    'td:has-text("₹")',
    'p:has-text("₹")',
]
CURRENCY_GLYPH = "₹"
APPROX_MARKER = "Approx"
# URL fallback: base64 JSON in this query parameter, price under this key
PRICE_URL_PARAM = "ID"
PRICE_URL_FIELD = "recovery_values"

# Timeouts (ms)
TABLE_FIFTH_ROW_TIMEOUT_MS = 20_000
TABLE_ROBUST_TIMEOUT_MS = 90_000
RESULTS_RACE_TIMEOUT_MS = 60_000
RESULTS_LOAD_TIMEOUT_MS = 60_000
NAV_TIMEOUT_MS = 30_000
DETAIL_LOAD_TIMEOUT_MS = 15_000
PRICE_SELECTOR_TIMEOUT_MS = 5_000
VALUE_CLICK_TIMEOUT_MS = 5_000
NEW_PAGE_TIMEOUT_MS = 10_000
FIELD_READ_TIMEOUT_MS = 5_000
SCROLL_TIMEOUT_MS = 5_000

# Fixed waits (ms)
DETAIL_SETTLE_MS = 2_000
PRICE_RETRY_DELAY_MS = 1_000
ROW_SETTLE_MS = 500
VALUE_LINK_SETTLE_MS = 1_000
AFTER_DETAIL_MS = 300
