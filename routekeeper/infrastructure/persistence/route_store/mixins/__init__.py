"""CRUD mixins package for route store persistence.

Each mixin covers one concern of the route storage engine. They are combined
by multiple inheritance into RouteStore, which provides ``session_scope``.
"""

from .deletion_mixin import DeletionMixin
from .import_operation_mixin import ImportOperationCRUDMixin
from .ownership_mixin import OwnershipMixin
from .pagination_mixin import PaginationMixin
from .queries_mixin import QueriesMixin
from .route_mixin import RouteCRUDMixin
from .value_store_mixin import ValueStoreMixin

__all__ = [
    "ValueStoreMixin",
    "OwnershipMixin",
    "RouteCRUDMixin",
    "PaginationMixin",
    "DeletionMixin",
    "QueriesMixin",
    "ImportOperationCRUDMixin",
]
