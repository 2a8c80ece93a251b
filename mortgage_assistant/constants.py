"""Application constants."""

# UAE mortgage primitives
MAX_LTV = 0.80
MIN_DOWN_PAYMENT = 0.20
UPFRONT_COST_PERCENTAGE = 0.07  # 4% transfer + 2% agency + 1% misc
INTEREST_RATE = 0.045
MAX_TENURE = 25
MIN_TENURE = 1 / 12  # one month
MAX_INTEREST_RATE = 1.0

# Buy vs rent heuristic, in years of planned stay
RENT_BELOW_YEARS = 3
BUY_ABOVE_YEARS = 5
DEFAULT_STAY_DURATION = 5

CURRENCY = "AED"

# Shown to the user when the provider cannot be reached
RATE_LIMITED_MESSAGE = (
    "The assistant is handling too many requests right now. "
    "Please try again in about {seconds} seconds."
)
PROVIDER_UNAVAILABLE_MESSAGE = (
    "I'm having trouble reaching the assistant. Please try again in a moment."
)
PROVIDER_FAILED_AFTER_TOOLS_MESSAGE = (
    "The assistant hit a snag while calculating. Please rephrase or try again."
)

# Server-sent events end marker
STREAM_DONE = "[DONE]"
