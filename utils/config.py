import yaml
from processors.sui_package_indexer.index_fields import (
    DEFAULT_INDEX_FIELDS,
    IndexField,
)
from utils.errors import MalformedTransactionError
from utils.general_utils import parse_address
from utils.models.general_models import NextCheckpointToProcess
from utils.processor_name import ProcessorName
from utils.session import Session
from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
import logging


class ProcessorConfig(BaseModel):
    type: str = ProcessorName.SUI_PACKAGE_INDEXER.value


class SuiPackageIndexerConfig(ProcessorConfig):
    # Required, there is no sensible default package to follow
    package_address: str
    index_fields: List[IndexField] = sorted(DEFAULT_INDEX_FIELDS, key=lambda f: f.value)

    @field_validator("package_address")
    @classmethod
    def validate_package_address(cls, value: str) -> str:
        try:
            return parse_address(value)
        except MalformedTransactionError as e:
            raise ValueError(str(e)) from e


class ServerConfig(BaseModel):
    processor_config: SuiPackageIndexerConfig
    postgres_connection_string: str
    # JSON lines file, one checkpoint per line
    checkpoint_file: str
    starting_checkpoint: Optional[int] = None
    ending_checkpoint: Optional[int] = None
    # Number of checkpoints processed in parallel and committed as one batch
    num_concurrent_processing_tasks: int = 10


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_nested_delimiter="__")

    health_check_port: int
    server_config: ServerConfig

    # Environment variables take precedence over config file settings
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, init_settings, file_secret_settings

    @classmethod
    def from_yaml_file(cls, path: str):
        with open(path, "r") as file:
            config = yaml.safe_load(file)

        return cls(**config)

    def get_starting_checkpoint(self, processor_name: str) -> int:
        next_checkpoint_to_process = None

        try:
            with Session() as session, session.begin():
                next_checkpoint_from_db = session.get(
                    NextCheckpointToProcess, processor_name
                )
                if next_checkpoint_from_db is not None:
                    next_checkpoint_to_process = next_checkpoint_from_db.next_checkpoint
        except SQLAlchemyError:
            logging.warning(
                "[Config] Database error when getting NextCheckpointToProcess. Skipping..."
            )

        # By default, if nothing is set, start from 0
        starting_checkpoint = 0
        if self.server_config.starting_checkpoint is not None:
            logging.info("[Config] Starting from config starting_checkpoint")
            starting_checkpoint = self.server_config.starting_checkpoint
        elif next_checkpoint_to_process is not None:
            logging.info("[Config] Starting from checkpoint from db")
            starting_checkpoint = next_checkpoint_to_process
        else:
            logging.info("[Config] Starting from checkpoint 0")

        return starting_checkpoint
