# automodel/reporting.py
import logging
import threading
from typing import Protocol, runtime_checkable


@runtime_checkable
class StatusReportable(Protocol):
    """Progress sink; return values are ignored"""

    def report(self, total: int, current: int, message: str) -> None:
        ...


class NullStatusReport:
    """Discards every report"""

    def report(self, total: int, current: int, message: str) -> None:
        pass


class LoggingStatusReport:
    """Forwards reports to the ``automodel.progress`` logger"""

    def __init__(self, logger: logging.Logger = None, level: int = logging.INFO):
        self.logger = logger or logging.getLogger("automodel.progress")
        self.level = level

    def report(self, total: int, current: int, message: str) -> None:
        self.logger.log(self.level, f"{current}/{total}: {message}")


class SynchronizedStatusReport:
    """Serializes calls to a wrapped sink so parallel folds can share it"""

    def __init__(self, target: StatusReportable):
        self.target = target
        self._lock = threading.Lock()

    def report(self, total: int, current: int, message: str) -> None:
        with self._lock:
            self.target.report(total, current, message)
