"""Sale totals, discount allocation and profit & loss figures."""

import secrets
from collections import defaultdict
from datetime import date
from decimal import Decimal

from bizhub.models.sale import PaymentMethod, SalesTransaction
from bizhub.schemas.expense import CategoryTotal
from bizhub.schemas.sale import PaymentMethodTotal, ProfitLossStatement, SalesSummary
from bizhub.services.payroll_tax import to_money

ZERO = Decimal("0.00")


def new_receipt_number(today: date) -> str:
    """``SR<year>-<4 digits>``, e.g. SR2024-0421."""
    return f"SR{today.year}-{secrets.randbelow(10_000):04d}"


def allocate_discount(subtotals: list[Decimal], discount: Decimal) -> list[Decimal]:
    """Split a receipt-level discount across lines in proportion to their subtotals.

    Shares are rounded to the ngwee and the last line absorbs the rounding
    difference, so the shares always add back up to ``discount``.
    """
    gross = sum(subtotals, ZERO)
    if discount > gross:
        raise ValueError(f"Discount {discount} exceeds the sale subtotal {gross}")
    if not discount or not gross:
        return [ZERO for _ in subtotals]

    shares = [to_money(discount * subtotal / gross) for subtotal in subtotals[:-1]]
    shares.append(to_money(discount - sum(shares, ZERO)))
    return shares


def summarize_sales(sales: list[SalesTransaction], start_date: date, end_date: date) -> SalesSummary:
    by_method: dict[PaymentMethod, list[Decimal]] = defaultdict(list)
    receipts = set()
    items_sold = 0
    for sale in sales:
        by_method[PaymentMethod(sale.payment_method)].append(sale.total_amount)
        receipts.add(sale.receipt_number)
        items_sold += sale.quantity

    methods = sorted(
        (PaymentMethodTotal(payment_method=method, count=len(amounts), total=sum(amounts, ZERO))
         for method, amounts in by_method.items()),
        key=lambda m: m.total,
        reverse=True,
    )
    return SalesSummary(
        period_start=start_date,
        period_end=end_date,
        receipts=len(receipts),
        items_sold=items_sold,
        by_payment_method=methods,
        total=sum((m.total for m in methods), ZERO),
    )


def build_profit_and_loss(
    sales_revenue: Decimal,
    invoice_revenue: Decimal,
    expenses_by_category: list[CategoryTotal],
    start_date: date,
    end_date: date,
) -> ProfitLossStatement:
    total_revenue = to_money(sales_revenue + invoice_revenue)
    total_expenses = to_money(sum((c.total for c in expenses_by_category), ZERO))
    net_profit = total_revenue - total_expenses
    margin = to_money(net_profit * 100 / total_revenue) if total_revenue else None
    return ProfitLossStatement(
        period_start=start_date,
        period_end=end_date,
        sales_revenue=to_money(sales_revenue),
        invoice_revenue=to_money(invoice_revenue),
        total_revenue=total_revenue,
        expenses_by_category=expenses_by_category,
        total_expenses=total_expenses,
        net_profit=net_profit,
        profit_margin=margin,
    )
