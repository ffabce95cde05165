"""Exceptions raised by Cadence."""


class CadenceError(Exception):
    """Base class for all Cadence errors."""


class NotFoundError(CadenceError):
    """A referenced learning item does not exist."""

    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class ConflictError(CadenceError):
    """A concurrent attempt updated the same progress record first.

    The caller is expected to retry the whole read-compute-write sequence.
    """

    def __init__(self, learner_id: int, item_id: int):
        self.learner_id = learner_id
        self.item_id = item_id
        super().__init__(f"Progress for learner {learner_id}, item {item_id} was updated concurrently")


class InvalidConfigurationError(CadenceError, ValueError):
    """Scheduling parameters are inconsistent (e.g. maximum below minimum interval)."""
