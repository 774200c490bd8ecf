"""DealDesk: deal pipeline list engine."""

__version__ = "0.3.0"
