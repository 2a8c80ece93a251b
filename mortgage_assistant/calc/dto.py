"""DTOs for the calculation engine."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CalculationResult(BaseModel):
    """Immutable calculation output serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        allow_inf_nan=False,
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class DownPaymentCheck(CalculationResult):
    valid: bool
    min_required: float
    actual: float


class MortgageCalculation(CalculationResult):
    property_price: float
    down_payment: float
    loan_amount: float
    ltv: float
    upfront_costs: float
    total_upfront: float
    emi: float
    tenure: float
    interest_rate: float


class BuyVsRentAnalysis(CalculationResult):
    recommendation: Literal["buy", "rent", "neutral"]
    reasoning: str
    monthly_emi: float
    monthly_rent: float
    upfront_costs: float
    total_upfront: float
    stay_duration: float


class RefinanceAnalysis(CalculationResult):
    current_emi: float
    new_emi: float
    monthly_savings: float
    # None means the new rate never pays back the switching costs
    break_even_months: float | None
    total_savings_over_remaining_tenure: float
    recommendation: Literal["refinance", "keep_current"]
