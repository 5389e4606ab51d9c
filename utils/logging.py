"""
JSON logging for the indexer.

`configure_logging` installs a `CustomLogger` as the root logger, so every
`logging.info(...)` call in the code base is rendered by `JsonFormatter`:

        import logging
        logging.info("[Parser] Processing checkpoint", extra={"checkpoint": 100})

produces

    {
        "timestamp": "2026-03-15 14:29:31,000",
        "level": "INFO",
        "fields": {
            "message": "[Parser] Processing checkpoint",
            "checkpoint": 100
        },
        "module": "extractor",
        "func_name": "extract_checkpoint",
        "path_name": "/.../processors/sui_package_indexer/extractor.py",
        "line_no": 41
    }
"""

import logging
import json

ROOT_LOGGER_NAME = "default_python_logger"


class CustomLogger(logging.Logger):
    # Nest user supplied extras so they cannot clash with LogRecord attributes
    def makeRecord(
        self,
        name,
        level,
        fn,
        lno,
        msg,
        args,
        exc_info,
        func=None,
        extra=None,
        sinfo=None,
    ):
        if extra:
            extra = {"fields": extra}
        return super().makeRecord(
            name,
            level,
            fn,
            lno,
            msg,
            args,
            exc_info,
            func=func,
            extra=extra,
            sinfo=sinfo,
        )


class JsonFormatter(logging.Formatter):
    def format(self, record):
        fields = {"message": record.getMessage()}
        fields.update(record.__dict__.get("fields", {}))
        if record.exc_info:
            fields["exception"] = self.formatException(record.exc_info)
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "fields": fields,
            "module": record.module,
            "func_name": record.funcName,
            "path_name": record.pathname,
            "line_no": record.lineno,
        }
        return json.dumps(log_data, default=str)


def configure_logging(level: int | str = logging.INFO) -> logging.Logger:
    logger = CustomLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(JsonFormatter())
    logger.addHandler(stream_handler)

    logging.root = logger
    return logger
