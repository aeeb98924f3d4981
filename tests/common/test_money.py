from decimal import Decimal

import pytest

from fee_billing.common.money import format_money, round_percent, to_money, to_wire
from fee_billing.core.enums import FeeType, Frequency


def test_to_money_quantizes_to_cents():
    assert to_money(0.1) == Decimal("0.10")
    assert to_money("2500") == Decimal("2500.00")
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(None) == 0
    assert to_money("") == 0


@pytest.mark.parametrize("value", ["abc", "NaN", "Infinity"])
def test_to_money_rejects_non_numbers(value):
    with pytest.raises(ValueError):
        to_money(value)


def test_wire_numbers():
    assert to_wire(Decimal("2500.00")) == 2500
    assert isinstance(to_wire(Decimal("2500.00")), int)
    assert to_wire(Decimal("150.50")) == 150.5


def test_round_percent_half_up():
    assert round_percent(Decimal("2500"), Decimal("3000")) == 83
    assert round_percent(Decimal("1"), Decimal("8")) == 13
    assert round_percent(Decimal("5"), Decimal("0")) == 0


def test_format_money():
    assert format_money(Decimal("3350"), "Rs.") == "Rs. 3,350.00"


@pytest.mark.parametrize("raw", ["One-Time", "OneTime", "one_time", "ONE TIME"])
def test_one_time_spellings(raw):
    assert FeeType.parse(raw) == FeeType.ONE_TIME


def test_frequency_defaults_to_monthly():
    assert FeeType.parse(None) == FeeType.RECURRING
    assert Frequency.parse("") == Frequency.MONTHLY
    assert Frequency.parse("quarterly") == Frequency.QUARTERLY
