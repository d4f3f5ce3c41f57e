"""Concrete SQL repository implementations.

Exports the generic SqlRepository, the entity-specific repositories and the
factory that chooses between them.  Application code normally goes through
create_repository() or UnitOfWork.get_repository() rather than
constructing these classes directly.
"""

from __future__ import annotations

from .factory import RepositoryFactory, create_repository, default_factory
from .generic import NoRowsAffectedError, SqlRepository
from .users import SqlUserRepository

__all__ = [
    "SqlRepository",
    "SqlUserRepository",
    "NoRowsAffectedError",
    "RepositoryFactory",
    "default_factory",
    "create_repository",
]
