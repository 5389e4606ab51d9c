from enum import Enum


class ProcessorName(Enum):
    SUI_PACKAGE_INDEXER = "sui_package_indexer"
