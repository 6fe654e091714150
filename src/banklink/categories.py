"""Shared category keyword table used by every transform.

Vendors that do not ship a structured category fall back to matching the
transaction text against this table. Entries are checked in order and the
first hit wins, so more specific phrases ("uber eats") must precede the
generic ones ("uber").
"""

import re

from .models import TransactionCategory

# Ordered (category, keywords) pairs.
KEYWORD_TABLE: tuple[tuple[TransactionCategory, tuple[str, ...]], ...] = (
    (
        TransactionCategory.MEALS,
        (
            "uber eats",
            "doordash",
            "grubhub",
            "deliveroo",
            "just eat",
            "restaurant",
            "cafe",
            "coffee",
            "starbucks",
            "mcdonald",
            "pizza",
            "bistro",
            "bakery",
            "diner",
            "burger",
            "sushi",
        ),
    ),
    (
        TransactionCategory.TRAVEL,
        (
            "airline",
            "airlines",
            "airways",
            "lufthansa",
            "ryanair",
            "easyjet",
            "delta air",
            "united air",
            "hotel",
            "airbnb",
            "booking.com",
            "expedia",
            "uber",
            "lyft",
            "taxi",
            "train",
            "amtrak",
            "parking",
        ),
    ),
    (
        TransactionCategory.SOFTWARE,
        (
            "github",
            "gitlab",
            "atlassian",
            "slack",
            "notion",
            "figma",
            "adobe",
            "microsoft",
            "google workspace",
            "google cloud",
            "aws",
            "amazon web services",
            "digitalocean",
            "heroku",
            "vercel",
            "openai",
            "dropbox",
            "zoom",
        ),
    ),
    (
        TransactionCategory.INTERNET_AND_TELEPHONE,
        (
            "comcast",
            "verizon",
            "at&t",
            "t-mobile",
            "vodafone",
            "telekom",
            "internet",
            "broadband",
            "mobile plan",
        ),
    ),
    (TransactionCategory.RENT, ("rent", "lease", "wework", "regus")),
    (
        TransactionCategory.UTILITIES,
        ("electric", "energy", "water bill", "gas bill", "utility", "utilities"),
    ),
    (
        TransactionCategory.OFFICE_SUPPLIES,
        ("staples", "office depot", "office supplies", "stationery"),
    ),
    (
        TransactionCategory.EQUIPMENT,
        ("apple store", "best buy", "dell", "lenovo", "hardware"),
    ),
    (
        TransactionCategory.MARKETING,
        ("facebook ads", "meta ads", "google ads", "linkedin ads", "advertising"),
    ),
    (
        TransactionCategory.PROFESSIONAL_SERVICES_FEES,
        ("legal", "law firm", "attorney", "accountant", "accounting", "consulting"),
    ),
    (TransactionCategory.INSURANCE, ("insurance", "insurer", "allianz", "geico")),
    (TransactionCategory.SALARY, ("payroll", "salary", "gusto", "deel", "wages")),
    (
        TransactionCategory.HEALTHCARE,
        ("pharmacy", "hospital", "clinic", "dental", "doctor", "medical"),
    ),
    (
        TransactionCategory.EDUCATION,
        ("udemy", "coursera", "tuition", "university", "school", "course"),
    ),
    (
        TransactionCategory.DONATIONS,
        ("donation", "charity", "foundation", "gofundme"),
    ),
    (TransactionCategory.TAXES, ("irs", "hmrc", "tax payment", "finanzamt")),
    (
        TransactionCategory.ACTIVITY,
        ("netflix", "spotify", "cinema", "theatre", "ticketmaster", "gym"),
    ),
)

_TOKEN_BOUNDARY = r"(?<![a-z0-9]){}(?![a-z0-9])"

_COMPILED: tuple[tuple[TransactionCategory, re.Pattern[str]], ...] = tuple(
    (
        category,
        re.compile(
            "|".join(_TOKEN_BOUNDARY.format(re.escape(k)) for k in keywords)
        ),
    )
    for category, keywords in KEYWORD_TABLE
)


def match_keywords(*texts: str | None) -> TransactionCategory | None:
    """Find the first category whose keywords appear in any of the texts.

    Matching is case-insensitive and on word boundaries, so "rent" does not
    match "current".

    Args:
        *texts: Candidate strings (name, description, merchant); None is skipped

    Returns:
        TransactionCategory | None: The matched category, or None
    """
    haystack = " ".join(t.lower() for t in texts if t)
    if not haystack:
        return None

    for category, pattern in _COMPILED:
        if pattern.search(haystack):
            return category
    return None
