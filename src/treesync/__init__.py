"""treesync: filesystem primitives for a file-synchronization engine."""

__version__ = "0.1.0"
