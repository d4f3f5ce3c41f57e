"""Domain repository interfaces.

All abstractions are defined here with abc.ABC and @abstractmethod.
Concrete implementations live in src/infrastructure/persistence/ and are
obtained through the repository factory or a unit of work.

Import from this package rather than individual modules to avoid coupling
callers to specific repository module paths.
"""

from .base import Repository
from .users import UserRepository

__all__ = [
    "Repository",
    "UserRepository",
]
