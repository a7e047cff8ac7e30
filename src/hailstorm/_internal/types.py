"""Shared type aliases for hailstorm."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from collections.abc import Callable

    from hailstorm.metrics.models import RequestOutcome

# Request headers as sent on the wire; later keys overwrite earlier ones.
Headers: TypeAlias = dict[str, str]

# Called by the aggregator with every outcome it receives, in arrival order.
OutcomeCallback: TypeAlias = "Callable[[RequestOutcome], None]"
