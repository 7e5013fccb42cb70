"""HTTP API for storing and retrieving messages between a sender and a receiver."""

__version__ = "1.0.0"
