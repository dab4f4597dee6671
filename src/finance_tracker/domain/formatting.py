from finance_tracker.models import Transaction, TransactionCandidate, TransactionType

TYPE_LABELS = {
    TransactionType.INCOME: "✅ Entrada",
    TransactionType.EXPENSE: "🔻 Saída",
}


def format_brl(amount: float) -> str:
    """Format an amount as Brazilian reais, e.g. ``R$ 1.234,56``."""
    sign = "-" if amount < 0 else ""
    grouped = f"{abs(amount):,.2f}"
    localized = grouped.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {localized}"


def format_confirmation(transaction: Transaction | TransactionCandidate) -> str:
    label = TYPE_LABELS[transaction.type]
    return (
        f"{label} registrada!\n"
        f"💰 Valor: R$ {transaction.amount:.2f}\n"
        f"📂 Categoria: {transaction.category}\n"
        f"📝 Descrição: {transaction.description}"
    )
