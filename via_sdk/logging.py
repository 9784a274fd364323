"""
Via SDK - Structured Logging

JSON log records for deposits, L2 transactions and node traffic.

Every component logs through a child of the ``via-sdk`` logger
(``via-sdk.deposit``, ``via-sdk.wallet.l2``, ...), so handlers are
configured once on the root component. Detail fields named like key
material are masked before a record is emitted.
"""

import json
import logging
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .errors import ViaError


ROOT_COMPONENT = "via-sdk"

REDACTED = "***"
SENSITIVE_FIELDS = frozenset({"wif", "private_key", "secret", "seed", "rpc_password"})

# Keyword arguments of StructuredLogger._log
RESERVED_FIELDS = frozenset({"operation", "txid", "duration_ms", "error"})


class LogLevel(Enum):
    """Log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _redact(details: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (REDACTED if k in SENSITIVE_FIELDS else v) for k, v in details.items()}


@dataclass
class LogEntry:
    """One structured record. ``txid`` holds an L1 txid or an L2 tx hash."""
    timestamp: float
    level: str
    message: str
    component: str
    operation: Optional[str] = None
    txid: Optional[str] = None
    duration_ms: Optional[float] = None
    details: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=_json_default)

    def to_text(self) -> str:
        text = f"[{self.level}] {self.component}: {self.message}"
        if self.txid:
            text += f" txid={self.txid}"
        if self.duration_ms is not None:
            text += f" ({self.duration_ms:.1f}ms)"
        for key, value in (self.details or {}).items():
            if isinstance(value, (bytes, bytearray, Enum)):
                value = _json_default(value)
            text += f" {key}={value}"
        if self.error:
            text += f" error={self.error}"
        return text


class StructuredLogger:
    """
    Structured logger for SDK components.

    Example:
        logger = get_logger("deposit")
        logger.info("Selected UTXOs", inputs=["ab..:0"], fee=179)

        with logger.operation("deposit") as op:
            op.set_txid(rpc.send_raw_transaction(raw_hex))
    """

    def __init__(
        self,
        component: str = ROOT_COMPONENT,
        logger: Optional[logging.Logger] = None,
        json_output: bool = True,
        include_timestamps: bool = True,
    ):
        """
        Args:
            component: Name written into every record.
            logger: Backing stdlib logger. Defaults to ``logging.getLogger(component)``
                with a stream handler installed on ``via-sdk`` if it has none.
            json_output: Emit JSON lines instead of plain text.
            include_timestamps: Stamp records with ``time.time()``.
        """
        self.component = component
        self.json_output = json_output
        self.include_timestamps = include_timestamps

        if logger is not None:
            self._logger = logger
            return

        self._logger = logging.getLogger(component)
        root = logging.getLogger(ROOT_COMPONENT)
        if not root.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            root.addHandler(handler)
            root.setLevel(logging.INFO)

    def __repr__(self) -> str:
        return f"StructuredLogger(component={self.component})"

    def _log(
        self,
        level: LogLevel,
        message: str,
        operation: Optional[str] = None,
        txid: Optional[str] = None,
        duration_ms: Optional[float] = None,
        error: Optional[str] = None,
        **details,
    ) -> LogEntry:
        entry = LogEntry(
            timestamp=time.time() if self.include_timestamps else 0,
            level=level.value,
            message=message,
            component=self.component,
            operation=operation,
            txid=txid,
            duration_ms=duration_ms,
            details=_redact(details) if details else None,
            error=error,
        )
        text = entry.to_json() if self.json_output else entry.to_text()
        getattr(self._logger, level.value.lower())(text)
        return entry

    def debug(self, message: str, **kwargs) -> LogEntry:
        return self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs) -> LogEntry:
        return self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs) -> LogEntry:
        return self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, error: Optional[BaseException] = None, **kwargs) -> LogEntry:
        return self._log(LogLevel.ERROR, message, error=str(error) if error else None, **kwargs)

    def operation(self, name: str) -> "OperationContext":
        """
        Time a block of work.

        Logs ``Completed <name>`` with its duration, or ``Failed <name>``
        with the error type (and the details of a ViaError) when the block
        raises. The exception always propagates.
        """
        return OperationContext(self, name)

    def child(self, name: str) -> "StructuredLogger":
        """Logger for ``<component>.<name>`` with the same output settings."""
        return StructuredLogger(
            component=f"{self.component}.{name}",
            logger=self._logger.getChild(name),
            json_output=self.json_output,
            include_timestamps=self.include_timestamps,
        )

    def set_level(self, level: LogLevel) -> None:
        self._logger.setLevel(getattr(logging, level.value))


class OperationContext:
    """Context manager returned by :meth:`StructuredLogger.operation`."""

    def __init__(self, logger: StructuredLogger, operation: str):
        self.logger = logger
        self.operation = operation
        self.txid: Optional[str] = None
        self.details: Dict[str, Any] = {}
        self._started = 0.0

    def __enter__(self) -> "OperationContext":
        self._started = time.perf_counter()
        self.logger.debug(f"Starting {self.operation}", operation=self.operation)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        elapsed = (time.perf_counter() - self._started) * 1000

        if exc_val is None:
            self.logger.info(
                f"Completed {self.operation}",
                operation=self.operation,
                duration_ms=elapsed,
                txid=self.txid,
                **self.details,
            )
            return

        details = dict(self.details)
        if isinstance(exc_val, ViaError):
            details.update({k: v for k, v in exc_val.details.items() if k not in RESERVED_FIELDS})
        details["error_type"] = type(exc_val).__name__
        self.logger.error(
            f"Failed {self.operation}",
            error=exc_val,
            operation=self.operation,
            duration_ms=elapsed,
            txid=self.txid,
            **details,
        )

    def set_txid(self, txid: str) -> None:
        self.txid = txid

    def add_detail(self, key: str, value: Any) -> None:
        self.details[key] = value


def get_logger(name: Optional[str] = None) -> StructuredLogger:
    """Logger for ``via-sdk.<name>``, or the root component."""
    if not name:
        return StructuredLogger()
    return StructuredLogger(component=f"{ROOT_COMPONENT}.{name}")


def create_file_logger(
    filepath: str,
    component: str = ROOT_COMPONENT,
    level: LogLevel = LogLevel.INFO,
) -> StructuredLogger:
    """
    Logger writing JSON lines to ``filepath``.

    The backing logger does not propagate, so records are not duplicated
    on the console handler of ``via-sdk``.
    """
    backing = logging.getLogger(f"{component}.file")
    handler = logging.FileHandler(filepath)
    handler.setFormatter(logging.Formatter("%(message)s"))
    backing.addHandler(handler)
    backing.setLevel(getattr(logging, level.value))
    backing.propagate = False
    return StructuredLogger(component=component, logger=backing)


def create_audit_logger(
    audit_callback: Callable[[dict], None],
    component: str = "via-audit",
) -> StructuredLogger:
    """
    Logger handing every decoded record to ``audit_callback``.

    Intended for keeping a trail of broadcast deposits and L2
    transactions, e.g.::

        audit = create_audit_logger(store.append)
        wallet = L2Wallet(key, provider, audit=audit)
    """

    class AuditHandler(logging.Handler):
        def emit(self, record):
            message = record.getMessage()
            try:
                entry = json.loads(message)
            except json.JSONDecodeError:
                entry = {"message": message}
            audit_callback(entry)

    backing = logging.getLogger(f"{component}.audit")
    backing.addHandler(AuditHandler())
    backing.setLevel(logging.INFO)
    return StructuredLogger(component=component, logger=backing)
