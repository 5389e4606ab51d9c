import logging

from typing import Any, Dict, List, Sequence
from processors.sui_package_indexer.models import (
    InputObjects,
    OutputObjects,
    Transaction,
    TransactionEffect,
    TransactionEvent,
    TransactionRecordSet,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from utils.db_utils import dialect_insert
from utils.errors import BatchCommitError
from utils.processor_name import ProcessorName

PROCESSOR_NAME = ProcessorName.SUI_PACKAGE_INDEXER.value


def commit_batch(
    session: Session,
    record_sets: Sequence[TransactionRecordSet],
) -> int:
    """Write a batch of record sets and return how many transactions were new.

    Must be called inside the caller's `session.begin()` block: a failure on
    any table raises `BatchCommitError` and the enclosing transaction rolls the
    whole batch back. Rows already present are left untouched.
    """
    if not record_sets:
        return 0

    logging.info(
        "[Committer] Inserting transaction records",
        extra={
            "processor_name": PROCESSOR_NAME,
            "num_of_transactions": len(record_sets),
        },
    )

    # Sort by pk to avoid postgres deadlock since we're doing multi threaded db writes
    transactions_dict = sorted(
        (
            {
                "tx_digest": record_set.transaction.tx_digest,
                "checkpoint_sequence_number": record_set.transaction.checkpoint_sequence_number,
                "sender": record_set.transaction.sender,
                "tx_kind": record_set.transaction.tx_kind,
                "gas_budget": record_set.transaction.gas_budget,
                "gas_price": record_set.transaction.gas_price,
                "serialized_tx": record_set.transaction.serialized_tx,
            }
            for record_set in record_sets
        ),
        key=lambda row: row["tx_digest"],
    )
    inserted = insert_ignore(session, Transaction, transactions_dict)

    logging.info(
        "[Committer] Successfully inserted transaction records",
        extra={"processor_name": PROCESSOR_NAME, "inserted": inserted},
    )

    for record_set in record_sets:
        insert_ignore(
            session,
            TransactionEffect,
            [
                {
                    "tx_digest": record_set.effects.tx_digest,
                    "effects_json": record_set.effects.effects_json,
                }
            ],
        )

        if record_set.events is not None:
            insert_ignore(
                session,
                TransactionEvent,
                [
                    {
                        "tx_digest": record_set.events.tx_digest,
                        "events_json": record_set.events.events_json,
                    }
                ],
            )

        insert_ignore(
            session,
            InputObjects,
            [
                {
                    "tx_digest": record_set.input_objects.tx_digest,
                    "objects_json": record_set.input_objects.objects_json,
                }
            ],
        )
        insert_ignore(
            session,
            OutputObjects,
            [
                {
                    "tx_digest": record_set.output_objects.tx_digest,
                    "objects_json": record_set.output_objects.objects_json,
                }
            ],
        )

    return inserted


def insert_ignore(
    session: Session,
    model: Any,
    rows: List[Dict[str, Any]],
) -> int:
    """INSERT ... ON CONFLICT (tx_digest) DO NOTHING, returning the rows written."""
    table_name = model.__tablename__
    insert_stmt = dialect_insert(session)(model).values(rows)
    do_nothing_stmt = insert_stmt.on_conflict_do_nothing(index_elements=["tx_digest"])
    try:
        result = session.execute(do_nothing_stmt)
    except SQLAlchemyError as e:
        logging.error(
            "[Committer] Failed to insert records",
            extra={
                "processor_name": PROCESSOR_NAME,
                "table": table_name,
                "error": str(e),
            },
        )
        raise BatchCommitError(table_name, str(e)) from e
    return result.rowcount
