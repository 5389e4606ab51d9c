from sqlalchemy.orm import DeclarativeBase
from utils.models.annotated_types import (
    StringPrimaryKeyType,
    BigIntegerType,
    UpdatedAtType,
)


class Base(DeclarativeBase):
    pass


# Watermark kept by the worker; the processors never write it
class NextCheckpointToProcess(Base):
    __tablename__ = "next_checkpoints_to_process"
    __table_args__ = {"schema": "per_schema"}

    indexer_name: StringPrimaryKeyType
    next_checkpoint: BigIntegerType
    updated_at: UpdatedAtType
