"""Persistence package.

Query building, entity mapping, repository implementations and the unit of
work.  The connection provider lives in src.infrastructure.database.
"""

from src.infrastructure.persistence.mapping import EntityMapping, FieldDescriptor, MappingError
from src.infrastructure.persistence.query_builder import (
    PaginationStyle,
    QueryBuilder,
    SortDirection,
)
from src.infrastructure.persistence.repositories import (
    RepositoryFactory,
    SqlRepository,
    SqlUserRepository,
    create_repository,
    default_factory,
)
from src.infrastructure.persistence.unit_of_work import UnitOfWork, UnitOfWorkState

__all__ = [
    "EntityMapping",
    "FieldDescriptor",
    "MappingError",
    "PaginationStyle",
    "QueryBuilder",
    "SortDirection",
    "RepositoryFactory",
    "SqlRepository",
    "SqlUserRepository",
    "create_repository",
    "default_factory",
    "UnitOfWork",
    "UnitOfWorkState",
]
