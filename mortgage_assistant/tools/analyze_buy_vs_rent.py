"""Tool: Compare buying against renting."""

import logging

from mortgage_assistant.calc.dto import BuyVsRentAnalysis
from mortgage_assistant.calc.engine import analyze_buy_vs_rent
from mortgage_assistant.tools.arguments import BuyVsRentArguments
from mortgage_assistant.tools.base import BaseTool

logger = logging.getLogger(__name__)


class AnalyzeBuyVsRentTool(BaseTool):
    name = "analyze_buy_vs_rent"
    description = (
        "Compare buying vs renting and return a recommendation. "
        "Call this when you have propertyPrice, monthlyRent, and stayDuration. "
        "Optional: downPayment, tenure. "
        'Example: { "propertyPrice": 1500000, "monthlyRent": 8000, "stayDuration": 5, '
        '"downPayment": 300000, "tenure": 25 }'
    )
    parameters = {
        "type": "object",
        "properties": {
            "propertyPrice": {
                "type": "number",
                "description": "The price of the property in AED (required)",
            },
            "monthlyRent": {
                "type": "number",
                "description": "Current monthly rent in AED (required)",
            },
            "downPayment": {
                "type": "number",
                "description": "Down payment amount in AED (optional)",
            },
            "stayDuration": {
                "type": "number",
                "description": "How long the user plans to stay in the UAE (years, required)",
            },
            "tenure": {
                "type": "number",
                "description": "Loan tenure in years (optional)",
            },
        },
        "required": ["propertyPrice", "monthlyRent", "stayDuration"],
    }

    def execute(self, arguments: BuyVsRentArguments) -> BuyVsRentAnalysis:
        logger.info(
            f"analyze_buy_vs_rent called with propertyPrice={arguments.property_price}, "
            f"monthlyRent={arguments.monthly_rent}, stayDuration={arguments.stay_duration}"
        )
        return analyze_buy_vs_rent(
            arguments.property_price,
            arguments.monthly_rent,
            down_payment=arguments.down_payment,
            tenure=arguments.tenure,
            stay_duration=arguments.stay_duration,
            interest_rate=arguments.interest_rate,
        )
