"""Progress sinks advanced once per input row.

Purely observational: nothing in the pipeline reads progress back.
"""

import logging

logger = logging.getLogger(__name__)


class NullProgress:
    def start(self, label: str = "") -> None:
        pass

    def tick(self) -> None:
        pass

    def finish(self) -> None:
        pass


class CountingProgress(NullProgress):
    def __init__(self):
        self.count = 0
        self.finished = False

    def tick(self) -> None:
        self.count += 1

    def finish(self) -> None:
        self.finished = True


class LoggingProgress(CountingProgress):
    """Logs every ``every`` rows and once more at the end."""

    def __init__(self, every: int = 100):
        super().__init__()
        self.every = max(1, every)
        self.label = ""

    def start(self, label: str = "") -> None:
        self.label = label
        logger.info(f"{label or 'Processing'}: started")

    def tick(self) -> None:
        super().tick()
        if self.count % self.every == 0:
            logger.info(f"{self.label or 'Processing'}: {self.count} rows")

    def finish(self) -> None:
        super().finish()
        logger.info(f"{self.label or 'Processing'}: done ({self.count} rows)")
