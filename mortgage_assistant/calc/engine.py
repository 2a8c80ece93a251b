"""
Deterministic mortgage math.

Every figure the assistant quotes comes from these functions rather than from
the language model. All functions are pure: no I/O and no shared state.
"""

import math

from mortgage_assistant.calc.dto import (
    BuyVsRentAnalysis,
    DownPaymentCheck,
    MortgageCalculation,
    RefinanceAnalysis,
)
from mortgage_assistant.constants import (
    BUY_ABOVE_YEARS,
    CURRENCY,
    DEFAULT_STAY_DURATION,
    INTEREST_RATE,
    MAX_LTV,
    MAX_TENURE,
    MIN_DOWN_PAYMENT,
    RENT_BELOW_YEARS,
    UPFRONT_COST_PERCENTAGE,
)


def calculate_emi(
    loan_amount: float,
    annual_rate: float = INTEREST_RATE,
    tenure_years: float = MAX_TENURE,
) -> float:
    """
    Calculate the equated monthly installment.

    EMI = [P x R x (1+R)^N] / [(1+R)^N - 1] where P is the principal, R the
    monthly rate and N the number of monthly installments.

    Args:
        loan_amount: Principal
        annual_rate: Annual interest rate as a decimal (0.045 for 4.5%)
        tenure_years: Loan tenure in years

    Returns:
        Monthly installment rounded to 2 decimals, or 0 for degenerate inputs
    """
    if loan_amount <= 0 or tenure_years <= 0 or annual_rate < 0:
        return 0.0

    monthly_rate = annual_rate / 12
    months = tenure_years * 12

    if monthly_rate == 0:
        return loan_amount / months

    try:
        growth = (1 + monthly_rate) ** months
    except OverflowError:
        growth = math.inf

    if growth == 1:
        # R x N too small to register, the limit is the linear split
        return round(loan_amount / months, 2)

    # Same as P x R x (1+R)^N / ((1+R)^N - 1), without overflowing on (1+R)^N
    emi = loan_amount * monthly_rate / (1 - 1 / growth)
    return round(emi, 2)


def calculate_max_loan_amount(property_price: float) -> float:
    return property_price * MAX_LTV


def calculate_min_down_payment(property_price: float) -> float:
    return property_price * MIN_DOWN_PAYMENT


def calculate_upfront_costs(property_price: float) -> float:
    return property_price * UPFRONT_COST_PERCENTAGE


def calculate_total_upfront(property_price: float, down_payment: float) -> float:
    return down_payment + calculate_upfront_costs(property_price)


def calculate_ltv(property_price: float, down_payment: float) -> float:
    if property_price <= 0:
        return 0.0
    return (property_price - down_payment) / property_price


def validate_down_payment(property_price: float, down_payment: float) -> DownPaymentCheck:
    """Check a down payment against the minimum required share of the price."""
    min_required = calculate_min_down_payment(property_price)
    return DownPaymentCheck(
        valid=down_payment >= min_required,
        min_required=min_required,
        actual=down_payment,
    )


def calculate_mortgage(
    property_price: float,
    down_payment: float | None = None,
    tenure: float | None = None,
    interest_rate: float | None = None,
) -> MortgageCalculation:
    """
    Resolve defaults and compute the full mortgage picture for a property.

    A missing down payment defaults to the minimum share of the price and a
    smaller one is raised to it. The loan never exceeds the maximum LTV.
    """
    rate = INTEREST_RATE if interest_rate is None else interest_rate
    final_tenure = min(MAX_TENURE if tenure is None else tenure, MAX_TENURE)

    min_down_payment = calculate_min_down_payment(property_price)
    resolved_down_payment = down_payment or min_down_payment
    if resolved_down_payment < min_down_payment:
        resolved_down_payment = min_down_payment

    loan_amount = property_price - resolved_down_payment
    ltv = calculate_ltv(property_price, resolved_down_payment)

    max_loan = calculate_max_loan_amount(property_price)
    if loan_amount > max_loan:
        loan_amount = max_loan
        resolved_down_payment = property_price - max_loan
        ltv = MAX_LTV

    return MortgageCalculation(
        property_price=property_price,
        down_payment=resolved_down_payment,
        loan_amount=loan_amount,
        ltv=ltv,
        upfront_costs=calculate_upfront_costs(property_price),
        total_upfront=calculate_total_upfront(property_price, resolved_down_payment),
        emi=calculate_emi(loan_amount, rate, final_tenure),
        tenure=final_tenure,
        interest_rate=rate,
    )


def _money(value: float) -> str:
    return f"{value:,.2f} {CURRENCY}"


def analyze_buy_vs_rent(
    property_price: float,
    monthly_rent: float,
    down_payment: float | None = None,
    tenure: float | None = None,
    stay_duration: float | None = None,
    interest_rate: float | None = None,
) -> BuyVsRentAnalysis:
    """
    Compare buying against renting.

    Stay below 3 years: rent, since transaction fees eat any gain.
    Stay above 5 years: buy, since equity buildup beats rent.
    Anything in between is a close call and both options are presented.
    """
    stay = DEFAULT_STAY_DURATION if stay_duration is None else stay_duration
    mortgage = calculate_mortgage(
        property_price,
        down_payment=down_payment,
        tenure=tenure,
        interest_rate=interest_rate,
    )

    if stay < RENT_BELOW_YEARS:
        recommendation = "rent"
        reasoning = (
            f"Since you plan to stay less than {RENT_BELOW_YEARS} years, renting is "
            f"typically better. The upfront costs ({_money(mortgage.upfront_costs)}) "
            "and transaction fees would likely outweigh any potential gains in such "
            "a short period."
        )
    elif stay > BUY_ABOVE_YEARS:
        recommendation = "buy"
        reasoning = (
            f"With a stay duration of over {BUY_ABOVE_YEARS} years, buying makes more "
            "sense. You'll build equity over time, and the monthly mortgage payment "
            f"({_money(mortgage.emi)}) compared to rent ({_money(monthly_rent)}) will "
            "work in your favor long-term."
        )
    else:
        recommendation = "neutral"
        reasoning = (
            f"With a stay duration of {RENT_BELOW_YEARS}-{BUY_ABOVE_YEARS} years, it's "
            "a close call. Consider your financial flexibility, market conditions, and "
            f"personal circumstances. Monthly mortgage: {_money(mortgage.emi)} vs "
            f"Rent: {_money(monthly_rent)}. Upfront costs: "
            f"{_money(mortgage.upfront_costs)}."
        )

    return BuyVsRentAnalysis(
        recommendation=recommendation,
        reasoning=reasoning,
        monthly_emi=mortgage.emi,
        monthly_rent=monthly_rent,
        upfront_costs=mortgage.upfront_costs,
        total_upfront=mortgage.total_upfront,
        stay_duration=stay,
    )


def calculate_refinance(
    current_loan_amount: float,
    current_rate: float,
    current_tenure: float,
    new_rate: float,
    switching_costs: float,
) -> RefinanceAnalysis:
    """Compare the current loan against the same balance at a new rate."""
    current_emi = calculate_emi(current_loan_amount, current_rate, current_tenure)
    new_emi = calculate_emi(current_loan_amount, new_rate, current_tenure)
    tenure_months = current_tenure * 12

    monthly_savings = current_emi - new_emi
    break_even_months = (
        switching_costs / monthly_savings if monthly_savings > 0 else None
    )
    worth_it = break_even_months is not None and break_even_months < tenure_months

    return RefinanceAnalysis(
        current_emi=current_emi,
        new_emi=new_emi,
        monthly_savings=monthly_savings,
        break_even_months=break_even_months,
        total_savings_over_remaining_tenure=monthly_savings * tenure_months - switching_costs,
        recommendation="refinance" if worth_it else "keep_current",
    )
