from collections import defaultdict
from collections.abc import Iterable

from finance_tracker.models import CategoryTotal, DashboardStats, Transaction, TransactionType

UNCATEGORIZED = "outros"


def summarize(transactions: Iterable[Transaction]) -> DashboardStats:
    total_income = 0.0
    total_expenses = 0.0
    count = 0
    by_category: dict[str, float] = defaultdict(float)

    for tx in transactions:
        count += 1
        if tx.type is TransactionType.INCOME:
            total_income += tx.amount
            continue
        total_expenses += tx.amount
        # Categories are free text; group case-insensitively.
        key = tx.category.strip().lower() or UNCATEGORIZED
        by_category[key] += tx.amount

    ranked = sorted(by_category.items(), key=lambda item: (-item[1], item[0]))
    return DashboardStats(
        total_income=round(total_income, 2),
        total_expenses=round(total_expenses, 2),
        balance=round(total_income - total_expenses, 2),
        transaction_count=count,
        expenses_by_category=[
            CategoryTotal(category=name, total=round(total, 2)) for name, total in ranked
        ],
    )
