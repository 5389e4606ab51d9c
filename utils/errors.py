from typing import Optional


class SuiIndexerError(Exception):
    pass


class ConfigurationError(SuiIndexerError):
    pass


class MalformedTransactionError(SuiIndexerError):
    """Raised when a transaction inside a checkpoint carries a reference
    (digest, sender or package address) that cannot be parsed.

    Processing of the whole checkpoint stops; the caller decides whether to
    retry or halt the stream.
    """

    def __init__(
        self,
        message: str,
        value: str,
        checkpoint_sequence_number: Optional[int] = None,
    ):
        self.value = value
        self.checkpoint_sequence_number = checkpoint_sequence_number
        super().__init__(f"{message}: {value!r}")

    def with_checkpoint(
        self, checkpoint_sequence_number: int
    ) -> "MalformedTransactionError":
        self.checkpoint_sequence_number = checkpoint_sequence_number
        return self


class BatchCommitError(SuiIndexerError):
    def __init__(self, table: str, reason: str):
        self.table = table
        super().__init__(f"Failed to insert {table} records: {reason}")
