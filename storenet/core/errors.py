"""
Error taxonomy.

Structural problems raise; topology mistakes never do.
A cable that may not exist at all raises ConnectionRejected and leaves
the graph untouched. A cable that may exist but is wrong becomes a
Finding from the validator instead.
"""


class StoreNetError(Exception):
    """Base class for all StoreNet exceptions.

    ``reason`` is the operator-facing explanation.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ConnectionRejected(StoreNetError):
    """Raised when a cable cannot be created between two ports."""


class DeviceNotFound(StoreNetError):
    """Raised when an operation names a device that is not in the graph."""


class DuplicateDevice(StoreNetError):
    """Raised when a device id (or one of its port ids) is already taken."""


class UnsupportedOperation(StoreNetError):
    """Raised when a device type does not support the requested operation."""


class SaveFileInvalid(StoreNetError):
    """Raised when a save file cannot be turned into a consistent topology."""
