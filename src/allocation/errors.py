"""
Exceptions raised by the allocation engine and its input collaborators.
"""


class AllocationError(Exception):
    """Base class for allocation failures."""


class NotFoundError(AllocationError):
    """An unknown company, category or account id was requested."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind.capitalize()} not found: {identifier}")


class InvalidPeriodError(AllocationError, ValueError):
    """The requested report window is out of range or reversed."""
