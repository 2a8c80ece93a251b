"""
Validated tool arguments.

Each tool has its own argument model; together they form a union tagged by
tool name. Required fields are enforced by construction, so an engine call can
only be built from a fully validated model.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from mortgage_assistant.constants import MAX_INTEREST_RATE, MAX_TENURE, MIN_TENURE

Rate = Annotated[float, Field(ge=0, le=MAX_INTEREST_RATE)]
# Longer mortgage tenures are capped by the engine rather than rejected
Tenure = Annotated[float, Field(ge=MIN_TENURE)]
RemainingTenure = Annotated[float, Field(ge=MIN_TENURE, le=MAX_TENURE)]


class ToolArguments(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        allow_inf_nan=False,
    )


class MortgageArguments(ToolArguments):
    tool: Literal["calculate_mortgage"] = "calculate_mortgage"
    property_price: float = Field(gt=0)
    down_payment: float | None = Field(default=None, ge=0)
    tenure: Tenure | None = None
    interest_rate: Rate | None = None


class BuyVsRentArguments(ToolArguments):
    tool: Literal["analyze_buy_vs_rent"] = "analyze_buy_vs_rent"
    property_price: float = Field(gt=0)
    monthly_rent: float = Field(gt=0)
    stay_duration: float = Field(gt=0)
    down_payment: float | None = Field(default=None, ge=0)
    tenure: Tenure | None = None
    interest_rate: Rate | None = None


class RefinanceArguments(ToolArguments):
    tool: Literal["calculate_refinance"] = "calculate_refinance"
    current_loan_amount: float = Field(gt=0)
    current_interest_rate: Rate
    current_tenure: RemainingTenure
    new_interest_rate: Rate
    switching_costs: float = Field(ge=0)


class EMIArguments(ToolArguments):
    """Inputs for a standalone EMI calculation (direct calculation endpoint only)."""

    loan_amount: float = Field(gt=0)
    interest_rate: Rate | None = None
    tenure: RemainingTenure | None = None


AnyToolArguments = Annotated[
    Union[MortgageArguments, BuyVsRentArguments, RefinanceArguments],
    Field(discriminator="tool"),
]

_adapter: TypeAdapter[AnyToolArguments] = TypeAdapter(AnyToolArguments)


def parse_tool_arguments(tool_name: str, payload: dict[str, Any]) -> AnyToolArguments:
    """
    Validate a raw payload into the argument model tagged by ``tool_name``.

    Raises:
        pydantic.ValidationError: On missing, invalid or untagged arguments
    """
    return _adapter.validate_python({**payload, "tool": tool_name})
