"""Zambian statutory tax catalogue and provision payables."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from bizhub.core.config import settings
from bizhub.models.payable import AccountsPayable, PayableStatus
from bizhub.services.payroll import parse_month
from bizhub.services.recurring import add_months

ZRA = "Zambia Revenue Authority (ZRA)"
STATUTORY_PREFIX = "Statutory:"


@dataclass(frozen=True)
class StatutoryTax:
    key: str
    label: str
    description: str
    authority: str
    default_due_day: int | None = None

    @property
    def due_day(self) -> int:
        """Payroll remittances follow STATUTORY_DUE_DAY; other taxes carry their own day."""
        return self.default_due_day or settings.STATUTORY_DUE_DAY


ZAMBIAN_TAX_TYPES: list[StatutoryTax] = [
    StatutoryTax("paye", "PAYE (Pay As You Earn)", "Employee income tax deducted at source", ZRA),
    StatutoryTax("napsa", "NAPSA Contributions", "National Pension Scheme (5% employer + 5% employee)", "NAPSA"),
    StatutoryTax("nhima", "NHIMA Contributions", "National Health Insurance (1% employer + 1% employee)", "NHIMA"),
    StatutoryTax("vat", "VAT (Value Added Tax)", "16% standard rate on taxable supplies", ZRA, 18),
    StatutoryTax("wht", "Withholding Tax (WHT)", "Tax withheld on payments to suppliers/contractors", ZRA, 14),
    StatutoryTax("turnover_tax", "Turnover Tax", "4% on annual turnover up to K800,000 (simplified regime)", ZRA, 14),
    StatutoryTax(
        "property_transfer_tax",
        "Property Transfer Tax",
        "5% on transfer of property, shares, or mining rights",
        ZRA,
        14,
    ),
    StatutoryTax("skills_dev_levy", "Skills Development Levy", "0.5% of gross emoluments for employee training", "TEVETA"),
]

TAX_TYPES_BY_KEY = {tax.key: tax for tax in ZAMBIAN_TAX_TYPES}


def get_tax_type(key: str) -> StatutoryTax:
    try:
        return TAX_TYPES_BY_KEY[key]
    except KeyError:
        raise ValueError(f"Unknown tax type '{key}'") from None


def statutory_due_date(period: str, due_day: int | None = None) -> date:
    """The given day of the month after ``period`` ("YYYY-MM")."""
    year, month = parse_month(period)
    return add_months(date(year, month, 1), 1, due_day or settings.STATUTORY_DUE_DAY)


def statutory_reference(key: str, period: str) -> str:
    return f"{key.upper()}-{period}"


def build_statutory_payable(
    tenant_id: UUID,
    tax: StatutoryTax,
    amount: Decimal,
    period: str,
    due_date: date | None = None,
    notes: str | None = None,
    recorded_by: UUID | None = None,
) -> AccountsPayable:
    return AccountsPayable(
        tenant_id=tenant_id,
        vendor_name=tax.authority,
        description=f"{STATUTORY_PREFIX} {tax.label} - {period}",
        amount=amount,
        due_date=due_date or statutory_due_date(period, tax.due_day),
        invoice_reference=statutory_reference(tax.key, period),
        status=PayableStatus.PENDING,
        notes=notes or tax.description,
        recorded_by=recorded_by,
    )
