"""Per-pipeline logger with the 0..6 minimum-severity scale."""

from __future__ import annotations

import logging
from typing import Any, MutableMapping

TRACE = 5
SILLY = 1

logging.addLevelName(TRACE, "TRACE")

# 0 silly, 1 trace, 2 debug, 3 info, 4 warn, 5 error, 6 fatal
SEVERITY_LEVELS: dict[int, int] = {
    0: SILLY,
    1: TRACE,
    2: logging.DEBUG,
    3: logging.INFO,
    4: logging.WARNING,
    5: logging.ERROR,
    6: logging.CRITICAL,
}


def to_logging_level(severity: int) -> int:
    if severity <= 0:
        return SEVERITY_LEVELS[0]
    if severity >= 6:
        return SEVERITY_LEVELS[6]
    return SEVERITY_LEVELS[severity]


class PipelineLogger(logging.LoggerAdapter):  # type: ignore[type-arg]
    def __init__(self, name: str, severity: int) -> None:
        super().__init__(logging.getLogger(f"quick_chain.pipeline.{name}"), {"pipeline": name})
        self.threshold: int = to_logging_level(severity)

    def isEnabledFor(self, level: int) -> bool:
        if level < self.threshold:
            return False
        return self.logger.isEnabledFor(level)

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(TRACE, msg, *args, **kwargs)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs.setdefault("extra", {}).update(self.extra or {})
        return msg, kwargs
