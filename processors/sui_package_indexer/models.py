from dataclasses import dataclass
from typing import Optional
from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column
from typing_extensions import Annotated
from utils.models.annotated_types import (
    BigIntegerType,
    CreatedAtType,
    JsonType,
    NullableStringType,
    StringPrimaryKeyType,
    StringType,
)
from utils.models.general_models import Base

PER_SCHEMA = {"schema": "per_schema"}

# Child tables hang off transactions.tx_digest, at most one row per digest
TransactionDigestForeignKeyType = Mapped[
    Annotated[
        str,
        mapped_column(
            String,
            ForeignKey("per_schema.transactions.tx_digest"),
            primary_key=True,
        ),
    ]
]


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = PER_SCHEMA

    tx_digest: StringPrimaryKeyType
    checkpoint_sequence_number: BigIntegerType
    sender: StringType
    tx_kind: JsonType
    gas_budget: BigIntegerType
    gas_price: BigIntegerType
    serialized_tx: JsonType
    created_at: CreatedAtType


class TransactionEffect(Base):
    __tablename__ = "transaction_effects"
    __table_args__ = PER_SCHEMA

    tx_digest: TransactionDigestForeignKeyType
    effects_json: JsonType
    created_at: CreatedAtType


class TransactionEvent(Base):
    __tablename__ = "transaction_events"
    __table_args__ = PER_SCHEMA

    tx_digest: TransactionDigestForeignKeyType
    events_json: JsonType
    created_at: CreatedAtType


class InputObjects(Base):
    __tablename__ = "input_objects"
    __table_args__ = PER_SCHEMA

    tx_digest: TransactionDigestForeignKeyType
    objects_json: JsonType
    created_at: CreatedAtType


class OutputObjects(Base):
    __tablename__ = "output_objects"
    __table_args__ = PER_SCHEMA

    tx_digest: TransactionDigestForeignKeyType
    objects_json: JsonType
    created_at: CreatedAtType


# Digest mapping for a transaction's parts; created with the schema but not
# populated by the processor
class CheckpointTransaction(Base):
    __tablename__ = "checkpoint_transactions"
    __table_args__ = PER_SCHEMA

    tx_digest: StringPrimaryKeyType
    transaction_digest: StringType
    transaction_effects_digest: NullableStringType
    transaction_events_digest: NullableStringType
    input_objects_digest: NullableStringType
    output_objects_digest: NullableStringType
    created_at: CreatedAtType


# Reserved for custom indexing on top of the generic tables
class MyIndexData(Base):
    __tablename__ = "my_index_data"
    __table_args__ = PER_SCHEMA

    id: StringPrimaryKeyType
    checkpoint_sequence_number: BigIntegerType


@dataclass
class TransactionRecordSet:
    """Rows derived from one matching transaction.

    Built fresh for every checkpoint and only held in memory until committed.
    """

    transaction: Transaction
    effects: TransactionEffect
    events: Optional[TransactionEvent]
    input_objects: InputObjects
    output_objects: OutputObjects

    @property
    def tx_digest(self) -> str:
        return self.transaction.tx_digest
