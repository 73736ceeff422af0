"""
Input errors raised by addressing and workload generation.

These signal programming or configuration mistakes: they surface
immediately and are never retried.
"""


class InputError(ValueError):
    """Base class for invalid arguments to the verification core."""

    pass


class PayloadTooLarge(InputError):
    """Raised when a chunk payload exceeds the maximum chunk size."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"payload of {size} bytes exceeds maximum chunk size of {limit} bytes")
        self.size = size
        self.limit = limit


class EmptyCandidateSet(InputError):
    """Raised when closest-node selection is given no candidates."""

    pass


class AddressLengthMismatch(InputError):
    """Raised when two addresses of different lengths are compared."""

    def __init__(self, left: int, right: int):
        super().__init__(f"address length mismatch: {left} != {right} bytes")
        self.left = left
        self.right = right


class InsufficientPopulation(InputError):
    """Raised when a pick is requested from too few items."""

    def __init__(self, population: int, exclusive: bool = True):
        if exclusive:
            message = f"cannot pick an index distinct from the excluded one out of {population} item(s)"
        else:
            message = f"cannot pick an index out of {population} item(s)"
        super().__init__(message)
        self.population = population
