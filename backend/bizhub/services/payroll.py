"""Payslip computation for one employee and one pay period."""

import calendar
import re
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from bizhub.models.employee import PayType
from bizhub.services.payroll_tax import (
    ZERO,
    calculate_employer_napsa,
    calculate_employer_nhima,
    calculate_napsa,
    calculate_nhima,
    calculate_paye,
    to_money,
)

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


class PayslipInput(BaseModel):
    """Everything needed to price one payslip; rates already resolved."""
    pay_type: PayType = PayType.MONTHLY
    basic_salary: Decimal = Field(ZERO, ge=0)
    hourly_rate: Decimal = Field(ZERO, ge=0)
    daily_rate: Decimal = Field(ZERO, ge=0)
    shift_rate: Decimal = Field(ZERO, ge=0)
    hours_worked: Decimal = Field(ZERO, ge=0)
    days_worked: Decimal = Field(ZERO, ge=0)
    shifts_worked: Decimal = Field(ZERO, ge=0)
    allowances: Decimal = Field(ZERO, ge=0)
    overtime_pay: Decimal = Field(ZERO, ge=0)
    bonus: Decimal = Field(ZERO, ge=0)
    loan_deduction: Decimal = Field(ZERO, ge=0)
    other_deductions: Decimal = Field(ZERO, ge=0)


class Payslip(BaseModel):
    pay_type: PayType
    rate: Decimal
    base_pay: Decimal
    gross_pay: Decimal
    napsa: Decimal
    nhima: Decimal
    paye: Decimal
    loan_deduction: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    employer_napsa: Decimal
    employer_nhima: Decimal


class PayrollTotals(BaseModel):
    gross: Decimal = ZERO
    napsa: Decimal = ZERO
    nhima: Decimal = ZERO
    paye: Decimal = ZERO
    deductions: Decimal = ZERO
    net: Decimal = ZERO
    employer_napsa: Decimal = ZERO
    employer_nhima: Decimal = ZERO


def base_pay_for(entry: PayslipInput) -> tuple[Decimal, Decimal]:
    """Return (rate, base pay) for the entry's pay type."""
    if entry.pay_type == PayType.HOURLY:
        return entry.hourly_rate, entry.hourly_rate * entry.hours_worked
    if entry.pay_type == PayType.DAILY:
        return entry.daily_rate, entry.daily_rate * entry.days_worked
    if entry.pay_type == PayType.PER_SHIFT:
        return entry.shift_rate, entry.shift_rate * entry.shifts_worked
    return entry.basic_salary, entry.basic_salary


def compute_payslip(entry: PayslipInput) -> Payslip:
    """Gross, statutory deductions and net pay for one entry.

    PAYE is assessed on gross less the employee's NAPSA contribution.
    """
    rate, base_pay = base_pay_for(entry)
    base_pay = to_money(base_pay)
    gross = to_money(base_pay + entry.allowances + entry.overtime_pay + entry.bonus)

    napsa = calculate_napsa(gross)
    nhima = calculate_nhima(gross)
    paye = calculate_paye(gross - napsa)
    total_deductions = to_money(
        napsa + nhima + paye + entry.loan_deduction + entry.other_deductions
    )

    return Payslip(
        pay_type=entry.pay_type,
        rate=to_money(rate),
        base_pay=base_pay,
        gross_pay=gross,
        napsa=napsa,
        nhima=nhima,
        paye=paye,
        loan_deduction=to_money(entry.loan_deduction),
        other_deductions=to_money(entry.other_deductions),
        total_deductions=total_deductions,
        net_pay=gross - total_deductions,
        employer_napsa=calculate_employer_napsa(gross),
        employer_nhima=calculate_employer_nhima(gross),
    )


def sum_payslips(payslips: list[Payslip]) -> PayrollTotals:
    totals = PayrollTotals()
    for slip in payslips:
        totals.gross += slip.gross_pay
        totals.napsa += slip.napsa
        totals.nhima += slip.nhima
        totals.paye += slip.paye
        totals.deductions += slip.total_deductions
        totals.net += slip.net_pay
        totals.employer_napsa += slip.employer_napsa
        totals.employer_nhima += slip.employer_nhima
    return totals


def parse_month(month: str) -> tuple[int, int]:
    """Parse "YYYY-MM". Raises ValueError on anything else."""
    match = _MONTH_RE.match(month)
    if not match:
        raise ValueError(f"Invalid month '{month}', expected YYYY-MM")
    year, mon = int(match.group(1)), int(match.group(2))
    if not 1 <= mon <= 12:
        raise ValueError(f"Invalid month '{month}', expected YYYY-MM")
    return year, mon


def pay_period(month: str) -> tuple[date, date]:
    """First and last day of the month."""
    year, mon = parse_month(month)
    _, last_day = calendar.monthrange(year, mon)
    return date(year, mon, 1), date(year, mon, last_day)
