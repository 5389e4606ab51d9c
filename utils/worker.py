from utils.checkpoint_source import batched, read_checkpoints
from utils.checkpoint_types import CheckpointData
from utils.checkpoints_processor import CheckpointsProcessor, ProcessingResult
from utils.config import Config
from utils.metrics import PROCESSED_CHECKPOINTS_COUNTER, LATEST_PROCESSED_CHECKPOINT
from utils.models.general_models import Base
from utils.processor_name import ProcessorName
from utils.session import Session
from processors.sui_package_indexer.processor import SuiIndexer
from sqlalchemy import DDL, create_engine
from sqlalchemy import event
from typing import Any, List, Optional
from prometheus_client.twisted import MetricsResource
from twisted.web.server import Site
from twisted.web.resource import Resource
from twisted.internet import reactor
from time import perf_counter
import threading
import logging

PROCESSOR_SERVICE_TYPE = "processor"


class IndexerProcessorServer:
    """Feeds checkpoints to a processor and commits its output.

    Checkpoints are processed `num_concurrent_processing_tasks` at a time on
    worker threads. The record sets of each group are committed in a single
    database transaction, after which the watermark is advanced.
    """

    config: Config
    processor: CheckpointsProcessor
    num_concurrent_processing_tasks: int

    def __init__(self, config: Config):
        self.config = config
        processor_config = self.config.server_config.processor_config
        logging.info(
            "[Parser] Kicking off",
            extra={
                "processor_name": processor_config.type,
                "service_type": PROCESSOR_SERVICE_TYPE,
            },
        )

        # Instantiate the correct processor based on config
        match processor_config.type:
            case ProcessorName.SUI_PACKAGE_INDEXER.value:
                self.processor = SuiIndexer.from_config(processor_config).build()
            case _:
                raise Exception(
                    "Invalid processor name"
                    "\n[ERROR]: The specified processor name was invalid or not found.\n"
                    "         - If you are using a custom processor, make sure to add it to the ProcessorName enum in utils/processor_name.py.\n"
                    "         - Ensure the IndexerProcessorServer constructor in utils/worker.py uses the new enum value.\n"
                )

        self.num_concurrent_processing_tasks = (
            self.config.server_config.num_concurrent_processing_tasks
        )

    class WorkerThread(threading.Thread):
        record_sets: List[Any]
        exception: Exception | None

        def __init__(
            self,
            processor: CheckpointsProcessor,
            checkpoint: CheckpointData,
        ):
            threading.Thread.__init__(self)
            self.processor = processor
            self.checkpoint = checkpoint
            self.record_sets = []
            self.exception = None

        def run(self):
            try:
                self.record_sets = self.processor.process_checkpoint(self.checkpoint)
            except Exception as e:
                logging.exception(
                    "[Parser] Error processing checkpoint",
                    extra={
                        "processor_name": self.processor.name(),
                        "checkpoint": self.checkpoint.checkpoint_summary.sequence_number,
                        "service_type": PROCESSOR_SERVICE_TYPE,
                    },
                )
                self.exception = e

    def process_batch(self, checkpoints: List[CheckpointData]) -> ProcessingResult:
        """Process a group of checkpoints in parallel and commit them together.

        The first processing error is re-raised and nothing from the group is
        written.
        """
        processor_name = self.processor.name()
        start_time = perf_counter()

        processor_threads = []
        for checkpoint in checkpoints:
            thread = IndexerProcessorServer.WorkerThread(self.processor, checkpoint)
            processor_threads.append(thread)
            thread.start()

        for thread in processor_threads:
            thread.join()

        record_sets: List[Any] = []
        for thread in processor_threads:
            if thread.exception:
                raise thread.exception
            record_sets.extend(thread.record_sets)

        processing_duration_in_secs = perf_counter() - start_time
        start_time = perf_counter()
        inserted = self.processor.insert_to_db(record_sets)
        db_insertion_duration_in_secs = perf_counter() - start_time

        start_checkpoint = checkpoints[0].checkpoint_summary.sequence_number
        end_checkpoint = checkpoints[-1].checkpoint_summary.sequence_number
        self.processor.update_last_processed_checkpoint(end_checkpoint)
        PROCESSED_CHECKPOINTS_COUNTER.labels(processor_name=processor_name).inc(
            len(checkpoints)
        )
        LATEST_PROCESSED_CHECKPOINT.labels(processor_name=processor_name).set(
            end_checkpoint
        )

        logging.info(
            "[Parser] Finished processing multiple checkpoints",
            extra={
                "processor_name": processor_name,
                "service_type": PROCESSOR_SERVICE_TYPE,
                "start_checkpoint": start_checkpoint,
                "end_checkpoint": end_checkpoint,
                "task_count": len(processor_threads),
                "num_of_record_sets": len(record_sets),
                "num_of_inserted_transactions": inserted,
                "processing_duration_in_secs": str(
                    format(processing_duration_in_secs, ".8f")
                ),
                "db_insertion_duration_in_secs": str(
                    format(db_insertion_duration_in_secs, ".8f")
                ),
                "step": "3",
            },
        )
        return ProcessingResult(
            start_checkpoint=start_checkpoint,
            end_checkpoint=end_checkpoint,
            processing_duration_in_secs=processing_duration_in_secs,
            db_insertion_duration_in_secs=db_insertion_duration_in_secs,
            num_of_inserted_transactions=inserted,
        )

    def run(self) -> None:
        processor_name = self.processor.name()

        # Run DB migrations
        logging.info(
            "[Parser] Initializing DB tables",
            extra={
                "processor_name": processor_name,
                "service_type": PROCESSOR_SERVICE_TYPE,
            },
        )
        self.init_db_tables(self.processor.schema())
        logging.info(
            "[Parser] DB tables initialized",
            extra={
                "processor_name": processor_name,
                "service_type": PROCESSOR_SERVICE_TYPE,
            },
        )

        self.start_health_and_monitoring_ports()

        starting_checkpoint = self.config.get_starting_checkpoint(processor_name)
        ending_checkpoint = self.config.server_config.ending_checkpoint
        logging.info(
            "[Parser] Starting checkpoint reader",
            extra={
                "processor_name": processor_name,
                "checkpoint_file": self.config.server_config.checkpoint_file,
                "start_checkpoint": starting_checkpoint,
                "end_checkpoint": ending_checkpoint,
                "service_type": PROCESSOR_SERVICE_TYPE,
            },
        )

        checkpoints = read_checkpoints(
            self.config.server_config.checkpoint_file,
            starting_checkpoint,
            ending_checkpoint,
        )
        for checkpoint_batch in batched(
            checkpoints, self.num_concurrent_processing_tasks
        ):
            self.process_batch(checkpoint_batch)

        logging.info(
            "[Parser] Checkpoint stream ended",
            extra={
                "processor_name": processor_name,
                "service_type": PROCESSOR_SERVICE_TYPE,
            },
        )

    def init_db_tables(self, schema_name: str) -> None:
        engine = create_engine(self.config.server_config.postgres_connection_string)
        # sqlite has no schemas
        translated_schema: Optional[str] = schema_name
        if engine.dialect.name == "sqlite":
            translated_schema = None
        engine = engine.execution_options(
            schema_translate_map={"per_schema": translated_schema}
        )
        Session.configure(bind=engine)
        Base.metadata.create_all(engine, checkfirst=True)

    def start_health_and_monitoring_ports(self) -> None:
        # Start the health + metrics server.
        def start_health_server() -> None:
            root = Resource()
            root.putChild(b"metrics", MetricsResource())  # type: ignore

            class ServerOk(Resource):
                isLeaf = True

                def render_GET(self, request):
                    return b"ok"

            root.putChild(b"", ServerOk())  # type: ignore
            factory = Site(root)
            reactor.listenTCP(self.config.health_check_port, factory)  # type: ignore
            reactor.run(installSignalHandlers=False)  # type: ignore

        t = threading.Thread(target=start_health_server, daemon=True)
        t.start()


@event.listens_for(Base.metadata, "before_create")
def create_schemas(target, connection, **kw):
    if connection.dialect.name != "postgresql":
        return
    schema_translate_map = connection.get_execution_options().get(
        "schema_translate_map", {}
    )
    schemas = set()
    for table in target.tables.values():
        if table.schema is not None:
            schemas.add(schema_translate_map.get(table.schema, table.schema))
    for schema in schemas:
        if schema is not None:
            connection.execute(DDL("CREATE SCHEMA IF NOT EXISTS %s" % schema))
