from typing import List, Tuple
from utils.checkpoint_types import (
    CheckpointTransaction,
    TransactionData,
)

# Utility functions for checkpoint_types


def get_transaction_data(
    checkpoint_transaction: CheckpointTransaction,
) -> TransactionData:
    return checkpoint_transaction.transaction.data


def get_transaction_digest(
    checkpoint_transaction: CheckpointTransaction,
) -> str:
    return checkpoint_transaction.transaction.digest


def get_sender(
    checkpoint_transaction: CheckpointTransaction,
) -> str:
    return get_transaction_data(checkpoint_transaction).sender


def get_move_calls(
    checkpoint_transaction: CheckpointTransaction,
) -> List[Tuple[str, str, str]]:
    return get_transaction_data(checkpoint_transaction).move_calls()
