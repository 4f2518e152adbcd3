"""Custom exception hierarchy for puzzle generation."""


class SudoqError(Exception):
    """Base exception for generator failures."""


class BoardError(SudoqError):
    """Raised when a board is accessed outside its valid positions."""


class BoardTypeError(SudoqError):
    """Raised when a board type definition is inconsistent or unknown."""


class CellStateError(SudoqError):
    """Raised when a cell would break the given/solution invariant."""


class ContradictionError(SudoqError):
    """Raised inside the oracle when a partial assignment has no completion."""


class InvalidRequestError(SudoqError):
    """Raised by the synchronous API when a generation request is malformed."""


class PuzzleValidationError(SudoqError):
    """Raised when the final puzzle integrity checks fail."""
