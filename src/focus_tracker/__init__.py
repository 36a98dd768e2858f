"""Track how long focus stays on each application window."""

__version__ = "0.3.0"
