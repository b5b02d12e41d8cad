"""Named metric snapshots reported by pipeline components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Metric:
    name: str
    value: Any
    tags: dict[str, Any] = field(default_factory=dict)


@dataclass
class Context:
    """A component's name and its current metrics."""

    name: str
    metrics: list[Metric] = field(default_factory=list)

    def metric(self, name: str) -> Metric:
        """Return the first metric called ``name``; raise KeyError if none."""
        for candidate in self.metrics:
            if candidate.name == name:
                return candidate
        raise KeyError(name)