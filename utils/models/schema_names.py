SUI_PACKAGE_INDEXER_SCHEMA_NAME = "sui_package_indexer"
