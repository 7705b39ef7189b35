"""
Run logging for the pipeline scripts.

A script run owns one stdlib logger with two handlers: the console, for
people, and logs/<script>_<run_id>.jsonl, one JSON object per event.
Structured payloads (config, inputs, outputs, metrics, model statistics)
ride on the log record and appear under "extra" in the JSONL file.
"""

import importlib
import json
import logging
import sys
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from shooting_eda.paths import LOGS_DIR

TRACKED_PACKAGES = ("pandas", "numpy", "pyarrow", "statsmodels", "requests", "yaml")


def new_run_id() -> str:
    """UTC timestamp plus a short random suffix, e.g. 20240105_031500_9f2c1a7e."""
    return f"{datetime.now(timezone.utc):%Y%m%d_%H%M%S}_{uuid.uuid4().hex[:8]}"


def get_versions() -> Dict[str, str]:
    """Interpreter and library versions, recorded in logs and sidecars."""
    versions = {"python": sys.version.split()[0]}
    for name in TRACKED_PACKAGES:
        try:
            module = importlib.import_module(name)
        except ImportError:
            continue
        versions[name] = getattr(module, "__version__", "unknown")
    return versions


class JSONLFormatter(logging.Formatter):
    """Render a record as one JSON line tagged with the script and run id."""

    def __init__(self, script_name: str, run_id: str):
        super().__init__()
        self.script_name = script_name
        self.run_id = run_id

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "script_name": self.script_name,
            "run_id": self.run_id,
            "level": record.levelname,
            "message": record.getMessage(),
        }
        payload = getattr(record, "payload", None)
        if payload:
            entry["extra"] = payload
        return json.dumps(entry, default=str)


class JSONLLogger:
    """
    Logger for one script run.

    Used as a context manager: an exception escaping the block is logged at
    ERROR with its traceback before it propagates, and the handlers are
    always detached and closed.

    Usage:
        with get_logger("02_clean_shootings") as logger:
            logger.info("Loaded raw rows", extra={"rows": 31_000})
            logger.log_metrics({"dropped_bad_dates": 0})
    """

    def __init__(
        self,
        script_name: str,
        run_id: Optional[str] = None,
        log_dir: Optional[Path] = None,
    ):
        self.script_name = script_name
        self.run_id = run_id or new_run_id()

        log_dir = Path(log_dir or LOGS_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = log_dir / f"{script_name}_{self.run_id}.jsonl"

        self._handlers = [
            logging.FileHandler(self.log_file, encoding="utf-8"),
            logging.StreamHandler(sys.stdout),
        ]
        self._handlers[0].setFormatter(JSONLFormatter(script_name, self.run_id))
        self._handlers[1].setLevel(logging.INFO)
        self._handlers[1].setFormatter(
            logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
        )

        self._logger = logging.getLogger(f"shooting_eda.{script_name}")
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False
        for handler in self._handlers:
            self._logger.addHandler(handler)

        self.info(
            "Logger initialized",
            extra={"log_file": str(self.log_file), "versions": get_versions()},
        )

    def _log(self, level: int, message: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self._logger.log(level, message, extra={"payload": payload})

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.WARNING, message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.ERROR, message, extra)

    def log_config(self, config: Dict[str, Any]) -> None:
        self._log(logging.INFO, "Configuration loaded", {"config": config})

    def log_inputs(self, inputs: Dict[str, str]) -> None:
        self._log(logging.INFO, "Inputs registered", {"inputs": inputs})

    def log_outputs(self, outputs: Dict[str, str]) -> None:
        self._log(logging.INFO, "Outputs registered", {"outputs": outputs})

    def log_metrics(self, metrics: Dict[str, Any]) -> None:
        """Row counts, dropped rows, shares and other stage figures."""
        self._log(logging.INFO, "Metrics recorded", {"metrics": metrics})

    def log_model_stats(self, model_stats: Dict[str, Any]) -> None:
        self._log(logging.INFO, "Model stats recorded", {"model_stats": model_stats})

    def close(self) -> None:
        self.info("Logger closing")
        for handler in self._handlers:
            self._logger.removeHandler(handler)
            handler.close()

    def __enter__(self) -> "JSONLLogger":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            self.error(
                f"Exception occurred: {exc_type.__name__}: {exc_val}",
                extra={
                    "traceback": "".join(
                        traceback.format_exception(exc_type, exc_val, exc_tb)
                    )
                },
            )
        self.close()


def get_logger(script_name: str, run_id: Optional[str] = None) -> JSONLLogger:
    """JSONLLogger writing to the project's logs/ directory."""
    return JSONLLogger(script_name=script_name, run_id=run_id)
