import logging

from typing import Any, List
from processors.sui_package_indexer.models import (
    InputObjects,
    OutputObjects,
    Transaction,
    TransactionEffect,
    TransactionEvent,
    TransactionRecordSet,
)
from processors.sui_package_indexer.package_matcher import (
    MatchedCall,
    match_package,
)
from utils import transaction_utils
from utils.checkpoint_types import (
    CheckpointData,
    CheckpointTransaction,
    Command,
    MoveCall,
    ProgrammableTransaction,
    TransactionKind,
)
from utils.errors import MalformedTransactionError
from utils.general_utils import (
    parse_address,
    parse_transaction_digest,
    standardize_address,
    to_json_value,
    to_signed_i64,
)
from utils.metrics import (
    MATCHED_TRANSACTIONS_COUNTER,
    SERIALIZATION_FAILURES_COUNTER,
    SKIPPED_TRANSACTIONS_COUNTER,
)
from utils.processor_name import ProcessorName

PROCESSOR_NAME = ProcessorName.SUI_PACKAGE_INDEXER.value

SKIP_REASON_NO_MOVE_CALLS = "no_move_calls"
SKIP_REASON_NO_PACKAGE_MATCH = "no_package_match"


def extract_checkpoint(
    checkpoint: CheckpointData,
    package_filter: str,
) -> List[TransactionRecordSet]:
    """Build one record set per transaction that calls `package_filter`.

    Output follows the transaction order of the checkpoint. A transaction with
    an unparseable digest, sender or package id fails the whole checkpoint.
    """
    checkpoint_sequence_number = checkpoint.checkpoint_summary.sequence_number
    logging.info(
        "[Parser] Processing checkpoint",
        extra={
            "processor_name": PROCESSOR_NAME,
            "checkpoint": checkpoint_sequence_number,
            "package_filter": package_filter,
            "num_of_transactions": len(checkpoint.transactions),
        },
    )

    record_sets: List[TransactionRecordSet] = []
    for tx_index, checkpoint_transaction in enumerate(checkpoint.transactions):
        try:
            record_set = extract_transaction(
                checkpoint_transaction,
                checkpoint_sequence_number,
                package_filter,
                tx_index,
            )
        except MalformedTransactionError as e:
            logging.error(
                "[Parser] Malformed transaction in checkpoint",
                extra={
                    "processor_name": PROCESSOR_NAME,
                    "checkpoint": checkpoint_sequence_number,
                    "tx_index": tx_index,
                    "value": e.value,
                },
            )
            raise e.with_checkpoint(checkpoint_sequence_number)

        if record_set is not None:
            record_sets.append(record_set)

    logging.info(
        "[Parser] Finished processing checkpoint",
        extra={
            "processor_name": PROCESSOR_NAME,
            "checkpoint": checkpoint_sequence_number,
            "num_of_matching_transactions": len(record_sets),
        },
    )
    return record_sets


def extract_transaction(
    checkpoint_transaction: CheckpointTransaction,
    checkpoint_sequence_number: int,
    package_filter: str,
    tx_index: int = 0,
) -> TransactionRecordSet | None:
    tx_digest = parse_transaction_digest(
        transaction_utils.get_transaction_digest(checkpoint_transaction)
    )
    sender = parse_address(transaction_utils.get_sender(checkpoint_transaction))
    move_calls = transaction_utils.get_move_calls(checkpoint_transaction)

    if not move_calls:
        logging.debug(
            "[Parser] Transaction has no move calls, skipping",
            extra={"tx_digest": tx_digest, "tx_index": tx_index},
        )
        SKIPPED_TRANSACTIONS_COUNTER.labels(
            processor_name=PROCESSOR_NAME, reason=SKIP_REASON_NO_MOVE_CALLS
        ).inc()
        return None

    package_match = match_package(move_calls, package_filter)
    if not package_match.is_match:
        logging.debug(
            "[Parser] No matching package found in transaction, skipping",
            extra={
                "tx_digest": tx_digest,
                "tx_index": tx_index,
                "num_of_move_calls": len(move_calls),
            },
        )
        SKIPPED_TRANSACTIONS_COUNTER.labels(
            processor_name=PROCESSOR_NAME, reason=SKIP_REASON_NO_PACKAGE_MATCH
        ).inc()
        return None

    logging.debug(
        "[Parser] Transaction uses target package",
        extra={
            "tx_digest": tx_digest,
            "sender": sender,
            "matched_calls": [
                f"{call.module}::{call.function}"
                for call in package_match.matched_calls
            ],
        },
    )
    MATCHED_TRANSACTIONS_COUNTER.labels(processor_name=PROCESSOR_NAME).inc()

    transaction_data = transaction_utils.get_transaction_data(checkpoint_transaction)
    tx_kind = build_tx_kind_json(
        transaction_data.kind,
        package_match.matched_calls,
        len(move_calls),
        tx_digest,
    )

    transaction = Transaction(
        tx_digest=tx_digest,
        checkpoint_sequence_number=checkpoint_sequence_number,
        sender=sender,
        tx_kind=tx_kind,
        gas_budget=to_signed_i64(transaction_data.gas_budget),
        gas_price=to_signed_i64(transaction_data.gas_price),
        serialized_tx=render_json(
            checkpoint_transaction.transaction, "serialized_tx", tx_digest
        ),
    )
    effects = TransactionEffect(
        tx_digest=tx_digest,
        effects_json=render_json(checkpoint_transaction.effects, "effects", tx_digest),
    )
    events = None
    if checkpoint_transaction.events is not None:
        events = TransactionEvent(
            tx_digest=tx_digest,
            events_json=render_json(
                checkpoint_transaction.events, "events", tx_digest
            ),
        )
    input_objects = InputObjects(
        tx_digest=tx_digest,
        objects_json=render_json(
            checkpoint_transaction.input_objects, "input_objects", tx_digest
        ),
    )
    output_objects = OutputObjects(
        tx_digest=tx_digest,
        objects_json=render_json(
            checkpoint_transaction.output_objects, "output_objects", tx_digest
        ),
    )

    return TransactionRecordSet(
        transaction=transaction,
        effects=effects,
        events=events,
        input_objects=input_objects,
        output_objects=output_objects,
    )


def build_tx_kind_json(
    kind: TransactionKind,
    matched_calls: List[MatchedCall],
    total_move_calls: int,
    tx_digest: str = "",
) -> dict:
    """Summary of the transaction kind, indexed next to the full transaction.

    Only Move calls keep their target; other commands are reduced to their
    kind.
    """
    if isinstance(kind, ProgrammableTransaction):
        return {
            "type": kind.kind,
            "matched_calls": [call.to_json() for call in matched_calls],
            "total_move_calls": total_move_calls,
            "inputs": render_json(kind.inputs, "inputs", tx_digest, default=[]),
            "commands": [summarize_command(command) for command in kind.commands],
        }
    return {
        "type": kind.kind,
        "matched_calls": [call.to_json() for call in matched_calls],
        "total_move_calls": total_move_calls,
    }


def summarize_command(command: Command) -> dict:
    if isinstance(command, MoveCall):
        return {
            "type": command.kind,
            "package": standardize_address(command.package),
            "module": command.module,
            "function": command.function,
        }
    return {"type": command.kind}


def render_json(value: Any, field: str, tx_digest: str, default: Any = None) -> Any:
    """JSON form of `value`, or `default` ({} unless given) if it has none."""
    try:
        return to_json_value(value)
    except ValueError as e:
        logging.warning(
            "[Parser] Failed to serialize transaction field, storing empty value",
            extra={
                "processor_name": PROCESSOR_NAME,
                "tx_digest": tx_digest,
                "field": field,
                "error": str(e),
            },
        )
        SERIALIZATION_FAILURES_COUNTER.labels(
            processor_name=PROCESSOR_NAME, field=field
        ).inc()
        return {} if default is None else default
