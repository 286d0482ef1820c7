"""Detect a listed company mentioned in a query and return its ticker symbol."""
from __future__ import annotations

import re

COMPANY_TICKERS: dict[str, str] = {
    "apple": "NASDAQ:AAPL",
    "microsoft": "NASDAQ:MSFT",
    "google": "NASDAQ:GOOGL",
    "alphabet": "NASDAQ:GOOGL",
    "amazon": "NASDAQ:AMZN",
    "meta": "NASDAQ:META",
    "facebook": "NASDAQ:META",
    "tesla": "NASDAQ:TSLA",
    "nvidia": "NASDAQ:NVDA",
    "netflix": "NASDAQ:NFLX",
    "intel": "NASDAQ:INTC",
    "amd": "NASDAQ:AMD",
    "advanced micro devices": "NASDAQ:AMD",
    "adobe": "NASDAQ:ADBE",
    "paypal": "NASDAQ:PYPL",
    "cisco": "NASDAQ:CSCO",
    "qualcomm": "NASDAQ:QCOM",
    "broadcom": "NASDAQ:AVGO",
    "starbucks": "NASDAQ:SBUX",
    "costco": "NASDAQ:COST",
    "airbnb": "NASDAQ:ABNB",
    "palantir": "NYSE:PLTR",
    "salesforce": "NYSE:CRM",
    "oracle": "NYSE:ORCL",
    "ibm": "NYSE:IBM",
    "uber": "NYSE:UBER",
    "lyft": "NASDAQ:LYFT",
    "spotify": "NYSE:SPOT",
    "snowflake": "NYSE:SNOW",
    "shopify": "NYSE:SHOP",
    "walmart": "NYSE:WMT",
    "disney": "NYSE:DIS",
    "coca-cola": "NYSE:KO",
    "coca cola": "NYSE:KO",
    "pepsico": "NASDAQ:PEP",
    "pepsi": "NASDAQ:PEP",
    "mcdonald's": "NYSE:MCD",
    "mcdonalds": "NYSE:MCD",
    "nike": "NYSE:NKE",
    "boeing": "NYSE:BA",
    "jpmorgan": "NYSE:JPM",
    "jp morgan": "NYSE:JPM",
    "goldman sachs": "NYSE:GS",
    "morgan stanley": "NYSE:MS",
    "bank of america": "NYSE:BAC",
    "wells fargo": "NYSE:WFC",
    "mastercard": "NYSE:MA",
    "berkshire hathaway": "NYSE:BRK.B",
    "exxon": "NYSE:XOM",
    "exxonmobil": "NYSE:XOM",
    "chevron": "NYSE:CVX",
    "pfizer": "NYSE:PFE",
    "johnson & johnson": "NYSE:JNJ",
    "moderna": "NASDAQ:MRNA",
    "general motors": "NYSE:GM",
    "toyota": "NYSE:TM",
    "samsung": "KRX:005930",
    "tsmc": "NYSE:TSM",
    "alibaba": "NYSE:BABA",
}

_CASHTAG_RE = re.compile(r"(?<![\w$])\$([A-Z]{1,5})\b")

# Bare ticker to its exchange-qualified symbol, for cashtags.
_SYMBOLS_BY_TICKER: dict[str, str] = {
    symbol.split(":", 1)[1]: symbol for symbol in COMPANY_TICKERS.values()
}

_NAME_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(rf"(?<!\w){re.escape(name)}(?!\w)", re.IGNORECASE), symbol)
    for name, symbol in sorted(COMPANY_TICKERS.items(), key=lambda kv: -len(kv[0]))
]


def detect_company_ticker(query: str) -> str | None:
    """Return the ticker of the earliest company mention, or None.

    Cashtags such as `$AAPL` resolve to the same exchange-qualified symbol
    as the company name; unknown cashtags are ignored.
    """
    if not query:
        return None

    best: tuple[int, str] | None = None
    for pattern, symbol in _NAME_PATTERNS:
        match = pattern.search(query)
        if match is None:
            continue
        if best is None or match.start() < best[0]:
            best = (match.start(), symbol)

    for cashtag in _CASHTAG_RE.finditer(query):
        symbol = _SYMBOLS_BY_TICKER.get(cashtag.group(1))
        if symbol is None:
            continue
        if best is None or cashtag.start() < best[0]:
            best = (cashtag.start(), symbol)
        break

    return best[1] if best else None
