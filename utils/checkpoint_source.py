from typing import Iterator, List, Optional
from utils.checkpoint_types import CheckpointData
import logging


def read_checkpoints(
    path: str,
    starting_checkpoint: int = 0,
    ending_checkpoint: Optional[int] = None,
) -> Iterator[CheckpointData]:
    """Yield checkpoints from a JSON lines file, one `CheckpointData` per line.

    Checkpoints before `starting_checkpoint` are skipped and reading stops
    after `ending_checkpoint`.
    """
    with open(path, "r") as file:
        for line_no, line in enumerate(file, start=1):
            line = line.strip()
            if not line:
                continue

            checkpoint = CheckpointData.model_validate_json(line)
            sequence_number = checkpoint.checkpoint_summary.sequence_number
            if sequence_number < starting_checkpoint:
                continue
            if ending_checkpoint is not None and sequence_number > ending_checkpoint:
                logging.info(
                    "[Parser] Reached ending checkpoint",
                    extra={"ending_checkpoint": ending_checkpoint, "line_no": line_no},
                )
                return
            yield checkpoint


def batched(
    checkpoints: Iterator[CheckpointData], batch_size: int
) -> Iterator[List[CheckpointData]]:
    batch: List[CheckpointData] = []
    for checkpoint in checkpoints:
        batch.append(checkpoint)
        if len(batch) == batch_size:
            yield batch
            batch = []
    if batch:
        yield batch
