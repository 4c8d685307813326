"""Agent ledger balances."""

from collections import Counter, defaultdict
from decimal import Decimal
from uuid import UUID

from bizhub.models.agent import AgentApplication, AgentTransaction, AgentTransactionType

# Sign applied to each transaction type when computing what an agent owes
BALANCE_SIGN: dict[AgentTransactionType, int] = {
    AgentTransactionType.INVOICE: 1,
    AgentTransactionType.CONSIGNMENT: 1,
    AgentTransactionType.PAYMENT: -1,
    AgentTransactionType.RETURN: -1,
}


def agent_balances(transactions: list[AgentTransaction]) -> dict[UUID, Decimal]:
    """What each agent owes: invoices and consignments less payments and returns."""
    balances: dict[UUID, Decimal] = defaultdict(lambda: Decimal("0.00"))
    for tx in transactions:
        sign = BALANCE_SIGN[AgentTransactionType(tx.transaction_type)]
        balances[tx.agent_id] += sign * tx.amount
    return dict(balances)


def total_outstanding(agents: list[AgentApplication], balances: dict[UUID, Decimal]) -> Decimal:
    # Agents in credit do not offset agents in debt
    return sum(
        (max(Decimal("0.00"), balances.get(agent.id, Decimal("0.00"))) for agent in agents),
        Decimal("0.00"),
    )


def province_counts(agents: list[AgentApplication]) -> dict[str, int]:
    return dict(Counter(agent.province for agent in agents))
