from __future__ import annotations

from dataclasses import dataclass

from .exit_codes import ERR_COLLECTOR, ERR_CONFIG, ERR_INTERNAL


@dataclass
class PerfGateError(Exception):
    message: str
    code: int = ERR_INTERNAL
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message


class ConfigInvalid(PerfGateError):
    """Budget or baseline definitions are unusable; the run aborts before collection."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ERR_CONFIG, kind="config_invalid")


class ConfigMissing(PerfGateError):
    def __init__(self, message: str) -> None:
        super().__init__(message, ERR_CONFIG, kind="config_missing")


class CollectorUnavailable(PerfGateError):
    def __init__(self, message: str) -> None:
        super().__init__(message, ERR_COLLECTOR, kind="collector_unavailable")


class CollectorTimeout(PerfGateError):
    def __init__(self, message: str) -> None:
        super().__init__(message, ERR_COLLECTOR, kind="collector_timeout")
