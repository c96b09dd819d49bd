"""
Exception classes for distclust.

All distclust exceptions inherit from DistClustError, and each one also
subclasses the closest builtin so existing ``except ValueError`` style
handlers keep working.

Example:
    >>> try:
    ...     hungarian([[1.0, 2.0]])
    ... except InvalidArgumentError as e:
    ...     print(f"Bad cost matrix: {e}")
    ... except DistClustError as e:
    ...     print(f"distclust error: {e}")
"""


class DistClustError(Exception):
    """
    Base exception for all distclust errors.

    Catch this to handle any distclust-specific error.
    """

    pass


class InvalidArgumentError(DistClustError, ValueError):
    """
    Raised when an input is malformed (empty or non-square matrix,
    non-positive scale, neighborhood smaller than one).
    """

    pass


class DomainError(DistClustError, ValueError):
    """
    Raised when a parameter lies outside its mathematically required range.

    Example:
        >>> AffinityPropagation(damping=1.0).fit(D)
        DomainError: damping must be in [0, 1), got 1.0
    """

    pass


class DimensionError(DistClustError, ValueError):
    """
    Raised when the shapes of related collections do not agree, or when
    there are too few elements for the requested neighborhood.
    """

    pass


class LogicError(DistClustError, RuntimeError):
    """
    Raised when a structural precondition is violated, e.g. a genetic run
    started with fewer than two individuals.
    """

    pass


class NotFoundError(DistClustError, LookupError):
    """
    Raised when a search exhausts its candidate space without success.
    """

    pass


class ConvergenceError(DistClustError, RuntimeError):
    """
    Raised when a numerical procedure does not converge within its
    iteration bound.
    """

    pass
