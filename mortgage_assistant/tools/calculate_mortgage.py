"""Tool: Calculate mortgage details for a property."""

import logging

from mortgage_assistant.calc.dto import MortgageCalculation
from mortgage_assistant.calc.engine import calculate_mortgage
from mortgage_assistant.tools.arguments import MortgageArguments
from mortgage_assistant.tools.base import BaseTool

logger = logging.getLogger(__name__)


class CalculateMortgageTool(BaseTool):
    """Tool to compute loan amount, LTV, EMI and upfront costs."""

    name = "calculate_mortgage"
    description = (
        "Calculate mortgage details (loan amount, LTV, EMI, upfront costs). "
        "Call this whenever the user mentions a property price. "
        "Inputs: propertyPrice (required), downPayment (optional, AED), tenure (optional, years). "
        'Example: { "propertyPrice": 1500000, "downPayment": 300000, "tenure": 25 }'
    )
    parameters = {
        "type": "object",
        "properties": {
            "propertyPrice": {
                "type": "number",
                "description": "The price of the property in AED (required)",
            },
            "downPayment": {
                "type": "number",
                "description": "Down payment amount in AED (optional; default minimum is 20%)",
            },
            "tenure": {
                "type": "number",
                "description": "Loan tenure in years (optional; max 25)",
            },
        },
        "required": ["propertyPrice"],
    }

    def execute(self, arguments: MortgageArguments) -> MortgageCalculation:
        logger.info(
            f"calculate_mortgage called with propertyPrice={arguments.property_price}, "
            f"downPayment={arguments.down_payment}, tenure={arguments.tenure}"
        )
        return calculate_mortgage(
            arguments.property_price,
            down_payment=arguments.down_payment,
            tenure=arguments.tenure,
            interest_rate=arguments.interest_rate,
        )
