import pytest

from mortgage_assistant.conversation.extractors import (
    ExtractedParameters,
    extract_parameters,
    parse_number_with_suffix,
)


@pytest.mark.parametrize(
    "value, suffix, expected",
    [
        ("2", None, 2),
        ("1.5", "m", 1_500_000),
        ("1.5", "M", 1_500_000),
        ("500", "k", 500_000),
        ("1,200,000", "", 1_200_000),
        ("3", "million", 3_000_000),
        ("abc", None, None),
    ],
)
def test_parse_number_with_suffix(value: str, suffix: str | None, expected: float | None) -> None:
    assert parse_number_with_suffix(value, suffix) == expected


def test_rent_is_not_mistaken_for_price() -> None:
    params = extract_parameters("rent is 8k aed")

    assert params.monthly_rent == 8_000
    assert params.property_price is None
    assert params.as_dict() == {"monthlyRent": 8_000}


def test_property_price_with_million_suffix() -> None:
    assert extract_parameters("property 1.5m").property_price == 1_500_000


def test_full_buy_vs_rent_message() -> None:
    params = extract_parameters(
        "1.5m villa, 300k down payment, 25 years, rent is 8k, planning to stay 7 years"
    )

    assert params.as_dict() == {
        "propertyPrice": 1_500_000,
        "downPayment": 300_000,
        "monthlyRent": 8_000,
        "tenure": 25,
        "stayDuration": 7,
    }


def test_amount_before_keyword() -> None:
    params = extract_parameters("I pay 8,000 AED rent and we make 30,000 aed per month")

    assert params.monthly_rent == 8_000
    assert params.income == 30_000


def test_loan_term_keyword() -> None:
    assert extract_parameters("a loan over 20 years please").tenure == 20


def test_percentages_are_not_amounts() -> None:
    params = extract_parameters("I can put 20% down")

    assert params.down_payment is None
    assert not params


@pytest.mark.parametrize("message", ["", "what's the weather like?", "%%% ,,, 12.", "k m million"])
def test_no_match_returns_empty(message: str) -> None:
    params = extract_parameters(message)

    assert params == ExtractedParameters()
    assert params.as_dict() == {}
    assert not params
