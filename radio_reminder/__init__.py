"""Radio Reminder: deadline tracking for time-shifted radio listening."""

__version__ = "0.1.0"
