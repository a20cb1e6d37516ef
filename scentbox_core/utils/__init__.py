# Utils package
from .cancellation import CancellationToken, check

__all__ = [
    "CancellationToken",
    "check",
]
