"""Observability for portfolio application services."""

from portfolio.application.observability.cascade_probe import (
    CascadeProbe,
    DefaultCascadeProbe,
)
from portfolio.application.observability.reconciler_probe import (
    DefaultFileTagReconcilerProbe,
    FileTagReconcilerProbe,
)
from portfolio.application.observability.version_guard_probe import (
    DefaultVersionGuardProbe,
    VersionGuardProbe,
)

__all__ = [
    "CascadeProbe",
    "DefaultCascadeProbe",
    "DefaultFileTagReconcilerProbe",
    "DefaultVersionGuardProbe",
    "FileTagReconcilerProbe",
    "VersionGuardProbe",
]
