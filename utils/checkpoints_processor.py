from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Sequence
from sqlalchemy import func
from sqlalchemy.orm import Session as OrmSession
from utils.checkpoint_types import CheckpointData
from utils.db_utils import dialect_insert
from utils.models.general_models import NextCheckpointToProcess
from utils.session import Session


@dataclass
class ProcessingResult:
    start_checkpoint: int
    end_checkpoint: int
    processing_duration_in_secs: float
    db_insertion_duration_in_secs: float
    num_of_inserted_transactions: int = 0


class CheckpointsProcessor(ABC):
    """Two stage processor contract.

    `process_checkpoint` is pure and may run for many checkpoints at once on
    worker threads. `commit` writes the values of one or more checkpoints in a
    single database transaction owned by the caller.
    """

    # Name of the processor for status logging
    # This will get stored in the database as the watermark key
    @abstractmethod
    def name(self) -> str:
        pass

    # Name of the DB schema this processor writes to
    @abstractmethod
    def schema(self) -> str:
        pass

    @abstractmethod
    def process_checkpoint(self, checkpoint: CheckpointData) -> List[Any]:
        pass

    @abstractmethod
    def commit(self, session: OrmSession, values: Sequence[Any]) -> int:
        pass

    def insert_to_db(self, values: Sequence[Any]) -> int:
        with Session() as session, session.begin():
            return self.commit(session, values)

    def update_last_processed_checkpoint(self, last_processed_checkpoint: int) -> None:
        with Session() as session, session.begin():
            insert_stmt = dialect_insert(session)(NextCheckpointToProcess).values(
                indexer_name=self.name(),
                next_checkpoint=last_processed_checkpoint + 1,
            )
            on_conflict_do_update_stmt = insert_stmt.on_conflict_do_update(
                index_elements=["indexer_name"],
                set_=dict(
                    next_checkpoint=insert_stmt.excluded.next_checkpoint,
                    updated_at=func.now(),
                ),
                where=(
                    insert_stmt.excluded.next_checkpoint
                    > NextCheckpointToProcess.next_checkpoint
                ),
            )
            session.execute(on_conflict_do_update_stmt)
