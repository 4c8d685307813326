"""Accounts receivable aging buckets."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from bizhub.models.invoice import Invoice


@dataclass
class AgingBucket:
    label: str
    min_days: int | None
    max_days: int | None
    invoices: list[Invoice] = field(default_factory=list)
    total: Decimal = Decimal("0.00")

    def contains(self, days_overdue: int) -> bool:
        if self.min_days is not None and days_overdue < self.min_days:
            return False
        if self.max_days is not None and days_overdue > self.max_days:
            return False
        return True

    @property
    def is_overdue(self) -> bool:
        return self.min_days is not None and self.min_days > 0


def make_buckets() -> list[AgingBucket]:
    return [
        AgingBucket("Current", None, 0),
        AgingBucket("1-30 Days", 1, 30),
        AgingBucket("31-60 Days", 31, 60),
        AgingBucket("61-90 Days", 61, 90),
        AgingBucket("90+ Days", 91, None),
    ]


def days_overdue(invoice: Invoice, as_of: date) -> int:
    """Days past due; invoices without a due date age from the invoice date."""
    reference = invoice.due_date or invoice.invoice_date
    return (as_of - reference).days


@dataclass
class AgingReport:
    as_of: date
    buckets: list[AgingBucket]
    total_receivables: Decimal
    total_overdue: Decimal


def build_aging_report(invoices: list[Invoice], as_of: date) -> AgingReport:
    buckets = make_buckets()
    total = Decimal("0.00")
    for invoice in invoices:
        overdue = days_overdue(invoice, as_of)
        total += invoice.total_amount
        for bucket in buckets:
            if bucket.contains(overdue):
                bucket.invoices.append(invoice)
                bucket.total += invoice.total_amount
                break

    return AgingReport(
        as_of=as_of,
        buckets=buckets,
        total_receivables=total,
        total_overdue=sum((b.total for b in buckets if b.is_overdue), Decimal("0.00")),
    )
