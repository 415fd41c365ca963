# storefront/core/logging.py
import logging
import sys

from pythonjsonlogger import jsonlogger


class JsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = self.formatTime(record)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        if record.exc_info and not log_record.get("exc_info"):
            log_record["exception"] = self.formatException(record.exc_info)
        log_record.pop("levelname", None)
        log_record.pop("name", None)


def setup_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Configura o root logger (JSON no stdout, ou texto simples em dev)."""
    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JsonFormatter(fmt="%(timestamp)s %(level)s %(logger)s %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    # bibliotecas barulhentas
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
