"""slotwise - find, score and book calendar time for tasks."""

__version__ = "0.1.0"
