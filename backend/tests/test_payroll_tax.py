"""Zambian PAYE, NAPSA and NHIMA arithmetic."""

from decimal import Decimal

import pytest

from bizhub.services.payroll_tax import (
    NAPSA_CEILING,
    calculate_employer_napsa,
    calculate_employer_nhima,
    calculate_napsa,
    calculate_nhima,
    calculate_paye,
    to_money,
)


@pytest.mark.parametrize("taxable", ["0", "1", "4000", "5100"])
def test_paye_nil_band(taxable):
    assert calculate_paye(Decimal(taxable)) == Decimal("0.00")


@pytest.mark.parametrize(
    "taxable, expected",
    [
        ("6100", "200.00"),
        ("7100", "400.00"),
        ("8100", "700.00"),
        ("9200", "1030.00"),
        ("10200", "1400.00"),
    ],
)
def test_paye_bands(taxable, expected):
    assert calculate_paye(Decimal(taxable)) == Decimal(expected)


def test_paye_negative_is_zero():
    assert calculate_paye(Decimal("-50")) == Decimal("0.00")


def test_napsa_is_five_percent():
    assert calculate_napsa(Decimal("10000")) == Decimal("500.00")


def test_napsa_capped_at_ceiling():
    assert calculate_napsa(Decimal("40000")) == to_money(NAPSA_CEILING * Decimal("0.05"))
    assert calculate_napsa(Decimal("40000")) == Decimal("1302.75")


def test_nhima_one_percent():
    assert calculate_nhima(Decimal("10000")) == Decimal("100.00")
    assert calculate_nhima(Decimal("0")) == Decimal("0.00")


def test_employer_shares_match_employee():
    gross = Decimal("30000")
    assert calculate_employer_napsa(gross) == calculate_napsa(gross)
    assert calculate_employer_nhima(gross) == calculate_nhima(gross)


def test_to_money_rounds_half_up():
    assert to_money("2.345") == Decimal("2.35")
    assert to_money(Decimal("2.344")) == Decimal("2.34")
