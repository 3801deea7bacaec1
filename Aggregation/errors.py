"""Exception taxonomy for motif-group aggregation."""


class AggregationError(ValueError):
    """Base class for aggregation configuration and data errors"""
    pass


class InvalidCriterion(AggregationError):
    """Raised when a grouping criterion is unknown or misses its motif size"""
    pass


class InvalidMotifSize(AggregationError):
    """Raised when a motif size is not a positive integer"""
    pass


class EmptyGroup(AggregationError):
    """Raised when a group has no events left to accumulate"""
    pass


class WindowOutOfBounds(AggregationError):
    """Raised when an event window does not fit inside the one-hot tensor"""
    pass


class OutOfBoundsAlignment(AggregationError):
    """Raised when a reference window lookup falls outside the reference matrix"""
    pass


class RenderFailure(RuntimeError):
    """Raised by rendering collaborators when one group cannot be rendered"""
    pass


__all__ = [
    'AggregationError',
    'InvalidCriterion',
    'InvalidMotifSize',
    'EmptyGroup',
    'WindowOutOfBounds',
    'OutOfBoundsAlignment',
    'RenderFailure',
]
