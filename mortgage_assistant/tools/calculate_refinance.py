"""Tool: Check whether refinancing pays off."""

import logging

from mortgage_assistant.calc.dto import RefinanceAnalysis
from mortgage_assistant.calc.engine import calculate_refinance
from mortgage_assistant.tools.arguments import RefinanceArguments
from mortgage_assistant.tools.base import BaseTool

logger = logging.getLogger(__name__)


class CalculateRefinanceTool(BaseTool):
    name = "calculate_refinance"
    description = (
        "Calculate if refinancing is worth it by comparing current EMI vs new EMI and "
        "switching costs. Call when user provides currentLoanAmount, currentInterestRate, "
        "currentTenure, newInterestRate, switchingCosts."
    )
    parameters = {
        "type": "object",
        "properties": {
            "currentLoanAmount": {
                "type": "number",
                "description": "Current outstanding loan amount in AED",
            },
            "currentInterestRate": {
                "type": "number",
                "description": "Current annual interest rate as a decimal (e.g., 0.05 for 5%, 0.045 for 4.5%)",
            },
            "currentTenure": {
                "type": "number",
                "description": "Remaining tenure in years",
            },
            "newInterestRate": {
                "type": "number",
                "description": "New annual interest rate being offered as a decimal (e.g., 0.04 for 4%)",
            },
            "switchingCosts": {
                "type": "number",
                "description": "Total switching costs in AED (fees, penalties, etc.)",
            },
        },
        "required": [
            "currentLoanAmount",
            "currentInterestRate",
            "currentTenure",
            "newInterestRate",
            "switchingCosts",
        ],
    }

    def execute(self, arguments: RefinanceArguments) -> RefinanceAnalysis:
        logger.info(
            f"calculate_refinance called with currentLoanAmount={arguments.current_loan_amount}, "
            f"currentRate={arguments.current_interest_rate}, newRate={arguments.new_interest_rate}"
        )
        return calculate_refinance(
            arguments.current_loan_amount,
            arguments.current_interest_rate,
            arguments.current_tenure,
            arguments.new_interest_rate,
            arguments.switching_costs,
        )
