from __future__ import annotations


class ChartError(Exception):
    """Base class for every error raised by polychart."""


class ChartConfigError(ChartError, ValueError):
    """Configuration problem that aborts the whole render before anything is drawn."""


class ChartDataError(ChartError, ValueError):
    """Input data that cannot be turned into series."""


class PanelError(ChartError):
    """Failure scoped to one panel; the orchestrator drops the panel and keeps going."""


class MarginError(PanelError):
    pass
