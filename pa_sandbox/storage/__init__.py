"""
Storage abstractions.

- RequestStorage → PA requests (create, memo update, soft delete, search)
- TokenStorage → capability tokens and their request associations
"""

from pa_sandbox.storage.base import (
    RequestStorage,
    TokenStorage,
    StorageProvider,
)
from pa_sandbox.storage.local import (
    InMemoryRequestStore,
    InMemoryTokenStore,
    create_local_storage,
)

__all__ = [
    "RequestStorage",
    "TokenStorage",
    "StorageProvider",
    "InMemoryRequestStore",
    "InMemoryTokenStore",
    "create_local_storage",
]
