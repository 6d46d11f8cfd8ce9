"""wpmonke - fixture-isolated contract tests for live WordPress sites."""

__version__ = "0.1.0"
