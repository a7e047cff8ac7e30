"""Single consumer of worker outcomes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hailstorm._internal.logging import get_logger

if TYPE_CHECKING:
    from hailstorm._internal.types import OutcomeCallback
    from hailstorm.engine.channel import OutcomeChannel
    from hailstorm.metrics.report import BenchmarkReport

logger = get_logger("metrics.aggregator")


class Aggregator:
    """Drains the outcome channel into a ``BenchmarkReport``.

    Each received outcome is first passed to ``on_outcome`` (the CLI prints
    it or advances a progress bar) and then added to the report.
    """

    def __init__(
        self,
        report: BenchmarkReport,
        *,
        on_outcome: OutcomeCallback | None = None,
    ) -> None:
        self._report = report
        self._on_outcome = on_outcome

    async def consume(self, channel: OutcomeChannel) -> BenchmarkReport:
        """Consume outcomes until every worker has released the channel.

        Returns:
            The report, holding every received outcome.
        """
        received = 0
        async for outcome in channel:
            if self._on_outcome is not None:
                self._on_outcome(outcome)
            self._report.add(outcome)
            received += 1

        logger.debug("Outcome channel closed after %d outcomes", received)
        return self._report
