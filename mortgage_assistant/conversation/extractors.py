"""
Lightweight regex-based parameter extraction from user messages.

The result is advisory context only. It is merged into session state but never
passed to the calculation engine: tool arguments go through their own
validation in the tool registry.
"""

import logging
import re
from dataclasses import asdict, dataclass

logger = logging.getLogger(__name__)

_MULTIPLIERS = {
    "k": 1_000,
    "thousand": 1_000,
    "m": 1_000_000,
    "mn": 1_000_000,
    "million": 1_000_000,
}

# Amount with optional k/m suffix; percentages and durations are not amounts
_MONEY = (
    r"(?<![\d.,])(?P<value>\d[\d,]*(?:\.\d+)?)\s*(?P<suffix>k|thousand|mn|m|million)?\b"
    r"(?!\s*%)(?!\s*(?:years?|yrs?|y|months?|mos?)\b)"
)
_YEARS = r"(?<![\d.,])(?P<value>\d+(?:\.\d+)?)(?P<suffix>)"
_YEAR_UNIT = r"\s*(?:-\s*)?(?:years?|yrs?|y)\b"
_CURRENCY = r"(?:aed|dhs?|dirhams?)"
_FILLER = r"(?:\s+(?:is|of|at|for|about|around|approx|roughly|currently|costs?|be|=|:))*\s*[:=]?\s*"
_PER_MONTH = r"(?:/\s*month|per\s+month|a\s+month|monthly)"

_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "downPayment": [
        rf"\b(?:down\s*payment|downpayment|deposit|dp)\b{_FILLER}{_CURRENCY}?\s*{_MONEY}",
        rf"{_MONEY}\s*{_CURRENCY}?\s*(?:as\s+(?:a\s+)?)?(?:down\s*payment|downpayment|down|dp|deposit)\b",
    ],
    "monthlyRent": [
        rf"\b(?:rent|rental|renting|lease)\b(?:\s+(?:pay|paying))?{_FILLER}{_CURRENCY}?\s*{_MONEY}",
        rf"{_MONEY}\s*{_CURRENCY}?\s*{_PER_MONTH}?\s*(?:in\s+|for\s+)?(?:rent|rental|lease)\b",
    ],
    "income": [
        rf"\b(?:income|salary|earn|earning|make)\b{_FILLER}{_CURRENCY}?\s*{_MONEY}",
        rf"{_MONEY}\s*{_CURRENCY}?\s*{_PER_MONTH}?\s*(?:income|salary)\b",
        rf"{_MONEY}\s*{_CURRENCY}?\s*{_PER_MONTH}\b(?!\s*(?:in\s+|for\s+)?(?:rent|rental|lease))",
    ],
    "stayDuration": [
        rf"\b(?:stay|staying|live|living|settle)\b(?:\s+[a-z]+){{0,4}}?\s+{_YEARS}{_YEAR_UNIT}",
        rf"{_YEARS}{_YEAR_UNIT}(?:\s+[a-z']+){{0,3}}?\s+(?:stay|staying|live|living|here)\b",
    ],
    "tenure": [
        rf"\b(?:tenure|term|loan|mortgage|over)\b{_FILLER}{_YEARS}{_YEAR_UNIT}",
        rf"{_YEARS}{_YEAR_UNIT}",
    ],
    "propertyPrice": [
        rf"\b(?:property|apartment|villa|flat|house|home|price|priced|worth|valued)\b{_FILLER}{_CURRENCY}?\s*{_MONEY}",
        rf"{_MONEY}\s*(?:{_CURRENCY}|property|apartment|villa|flat|house|home|price|cost)\b",
    ],
}

_COMPILED = {
    name: [re.compile(pattern, re.IGNORECASE) for pattern in patterns]
    for name, patterns in _PATTERNS.items()
}


@dataclass(frozen=True)
class ExtractedParameters:
    """Advisory values recognized in free text. Not validated input."""

    property_price: float | None = None
    income: float | None = None
    down_payment: float | None = None
    monthly_rent: float | None = None
    tenure: float | None = None
    stay_duration: float | None = None

    def as_dict(self) -> dict[str, float]:
        """Recognized values keyed by their camelCase tool-argument names."""
        return {
            _camel(name): value
            for name, value in asdict(self).items()
            if value is not None
        }

    def __bool__(self) -> bool:
        return bool(self.as_dict())


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def parse_number_with_suffix(value: str, suffix: str | None = None) -> float | None:
    """Convert strings like "2", "1.5" + "m" or "500" + "k" to numbers."""
    try:
        number = float(value.replace(",", ""))
    except ValueError:
        return None
    return number * _MULTIPLIERS.get((suffix or "").lower(), 1)


def extract_parameters(message: str) -> ExtractedParameters:
    """
    Scan a user message for mortgage parameters.

    Fields are scanned from the most to the least specific vocabulary. A number
    already attributed to one field is not reused for another, so "rent is 8k
    aed" yields a rent and not a property price.

    Args:
        message: Free-text user message

    Returns:
        ExtractedParameters with the recognized fields set
    """
    if not message:
        return ExtractedParameters()

    claimed: list[tuple[int, int]] = []
    found: dict[str, float] = {}

    for name, patterns in _COMPILED.items():
        for pattern in patterns:
            value = _first_unclaimed(pattern, message, claimed)
            if value is not None:
                found[_snake(name)] = value
                break

    if found:
        logger.debug(f"Extracted parameters: {found}")
    return ExtractedParameters(**found)


def _first_unclaimed(
    pattern: re.Pattern[str],
    message: str,
    claimed: list[tuple[int, int]],
) -> float | None:
    for match in pattern.finditer(message):
        start, end = match.span("value")
        if any(start < c_end and c_start < end for c_start, c_end in claimed):
            continue
        value = parse_number_with_suffix(match.group("value"), match.group("suffix"))
        if value is None or value <= 0:
            continue
        claimed.append((start, end))
        return value
    return None
