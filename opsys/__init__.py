"""Permission changing with event logging, and a FIFO-based task server with a load generator."""

__version__ = "0.1.0"