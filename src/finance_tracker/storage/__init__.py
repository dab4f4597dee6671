import os

from finance_tracker.core import settings
from finance_tracker.logger import get_logger

from .base import TransactionStore
from .feed import Subscription, TransactionFeed
from .local import LocalTransactionStore
from .supabase import SupabaseTransactionStore

logger = get_logger(__name__)

LOCAL_STORE_FILENAME = "transactions.json"


def build_store(data_dir: str | None = None) -> TransactionStore:
    supabase = SupabaseTransactionStore()
    if supabase.configured:
        logger.info("Using Supabase store: table=%s", supabase.table)
        return supabase

    data_path = os.path.join(data_dir or settings.DATA_DIR, LOCAL_STORE_FILENAME)
    logger.warning(
        "SUPABASE_URL or SUPABASE_ANON_KEY not set. Using local store at %s.",
        data_path,
    )
    return LocalTransactionStore(data_path=data_path)


__all__ = [
    "LocalTransactionStore",
    "Subscription",
    "SupabaseTransactionStore",
    "TransactionFeed",
    "TransactionStore",
    "build_store",
]
