import logging

from typing import FrozenSet, Iterable, List, Optional, Sequence
from processors.sui_package_indexer.committer import commit_batch
from processors.sui_package_indexer.extractor import extract_checkpoint
from processors.sui_package_indexer.index_fields import (
    DEFAULT_INDEX_FIELDS,
    IndexField,
)
from processors.sui_package_indexer.models import TransactionRecordSet
from sqlalchemy.orm import Session
from utils.checkpoint_types import CheckpointData
from utils.checkpoints_processor import CheckpointsProcessor
from utils.config import SuiPackageIndexerConfig
from utils.errors import ConfigurationError, MalformedTransactionError
from utils.general_utils import parse_address
from utils.metrics import INSERTED_TRANSACTIONS_COUNTER
from utils.models.schema_names import SUI_PACKAGE_INDEXER_SCHEMA_NAME
from utils.processor_name import ProcessorName


class SuiPackageIndexerProcessor(CheckpointsProcessor):
    """Indexes every transaction that calls into one Move package.

    Holds only read-only configuration, so a single instance can serve all
    worker threads.
    """

    def __init__(self, package_filter: str, index_fields: FrozenSet[IndexField]):
        self._package_filter = package_filter
        self._index_fields = index_fields

    @property
    def package_filter(self) -> str:
        return self._package_filter

    # Every record kind is extracted today; the selection is kept so the
    # extracted set can be narrowed without a config change
    @property
    def index_fields(self) -> FrozenSet[IndexField]:
        return self._index_fields

    def name(self) -> str:
        return ProcessorName.SUI_PACKAGE_INDEXER.value

    def schema(self) -> str:
        return SUI_PACKAGE_INDEXER_SCHEMA_NAME

    def process_checkpoint(
        self, checkpoint: CheckpointData
    ) -> List[TransactionRecordSet]:
        return extract_checkpoint(checkpoint, self._package_filter)

    def commit(
        self, session: Session, values: Sequence[TransactionRecordSet]
    ) -> int:
        inserted = commit_batch(session, values)
        INSERTED_TRANSACTIONS_COUNTER.labels(processor_name=self.name()).inc(inserted)
        return inserted


class SuiIndexer:
    """Collects the processor configuration before the pipeline starts.

        indexer = SuiIndexer()
        indexer.set_filter_package("0x2")
        indexer.set_filter_fields([IndexField.TRANSACTION, IndexField.EFFECTS])
        processor = indexer.build()
    """

    def __init__(self):
        self.package_filter: Optional[str] = None
        self.field_filters: FrozenSet[IndexField] = DEFAULT_INDEX_FIELDS

    @classmethod
    def from_config(cls, processor_config: SuiPackageIndexerConfig) -> "SuiIndexer":
        indexer = cls()
        indexer.set_filter_package(processor_config.package_address)
        indexer.set_filter_fields(processor_config.index_fields)
        return indexer

    def set_filter_package(self, package: str) -> None:
        try:
            self.package_filter = parse_address(package)
        except MalformedTransactionError as e:
            raise ConfigurationError(f"Invalid package filter: {e}") from e

    def set_filter_fields(self, fields: Iterable[IndexField]) -> None:
        self.field_filters = frozenset(fields)

    def build(self) -> SuiPackageIndexerProcessor:
        if self.package_filter is None:
            raise ConfigurationError("Package filter not set")

        logging.info(
            "[Parser] Package filter configured",
            extra={
                "processor_name": ProcessorName.SUI_PACKAGE_INDEXER.value,
                "package_filter": self.package_filter,
                "index_fields": sorted(field.value for field in self.field_filters),
            },
        )
        return SuiPackageIndexerProcessor(self.package_filter, self.field_filters)
