"""Time-off service: leave requests, balances and manager decisions."""

__version__ = "1.0.0"
