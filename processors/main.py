import argparse
import logging
from utils.config import Config
from utils.worker import IndexerProcessorServer
from utils.logging import configure_logging

if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("-c", "--config", help="Path to config file", required=True)
    parser.add_argument(
        "--log-level",
        help="Logging level, e.g. DEBUG to log every examined transaction",
        default="INFO",
    )
    args = parser.parse_args()

    configure_logging(args.log_level.upper())
    logging.info("[Config] Loading config", extra={"path": args.config})
    config = Config.from_yaml_file(args.config)

    indexer_server = IndexerProcessorServer(
        config,
    )
    indexer_server.run()
