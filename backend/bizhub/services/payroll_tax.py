"""Zambian statutory payroll deductions.

PAYE is charged on gross pay less the employee's NAPSA contribution, using the
monthly bands below. NAPSA is 5% of gross up to the monthly insurable ceiling,
paid by both employee and employer. NHIMA is 1% of gross from each side with no
ceiling.

All amounts are monthly Kwacha and are rounded half-up to the ngwee.
"""

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# (upper bound of band, rate); None means no upper bound
PAYE_BANDS: list[tuple[Decimal | None, Decimal]] = [
    (Decimal("5100"), Decimal("0")),
    (Decimal("7100"), Decimal("0.20")),
    (Decimal("9200"), Decimal("0.30")),
    (None, Decimal("0.37")),
]

NAPSA_RATE = Decimal("0.05")
NAPSA_CEILING = Decimal("26055")
NHIMA_RATE = Decimal("0.01")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Round to cents, half-up."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_paye(taxable_income: Decimal) -> Decimal:
    """Progressive PAYE on monthly taxable income.

    >>> calculate_paye(Decimal("7100"))
    Decimal('400.00')
    >>> calculate_paye(Decimal("9200"))
    Decimal('1030.00')
    """
    taxable = Decimal(taxable_income)
    if taxable <= 0:
        return ZERO

    tax = ZERO
    lower = ZERO
    for upper, rate in PAYE_BANDS:
        if upper is None or taxable <= upper:
            tax += (taxable - lower) * rate
            break
        tax += (upper - lower) * rate
        lower = upper
    return to_money(tax)


def calculate_napsa(gross_pay: Decimal) -> Decimal:
    """Employee NAPSA contribution: 5% of gross, capped at the ceiling."""
    gross = Decimal(gross_pay)
    if gross <= 0:
        return ZERO
    return to_money(min(gross, NAPSA_CEILING) * NAPSA_RATE)


def calculate_nhima(gross_pay: Decimal) -> Decimal:
    """Employee NHIMA contribution: 1% of gross."""
    gross = Decimal(gross_pay)
    if gross <= 0:
        return ZERO
    return to_money(gross * NHIMA_RATE)


def calculate_employer_napsa(gross_pay: Decimal) -> Decimal:
    # Employer matches the employee share
    return calculate_napsa(gross_pay)


def calculate_employer_nhima(gross_pay: Decimal) -> Decimal:
    return calculate_nhima(gross_pay)
