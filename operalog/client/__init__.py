from operalog.client.api import OperaApiClient
from operalog.client.catalog import CatalogLoader, CatalogStatus, search_operas
from operalog.client.collections import RemoteCollection
from operalog.client.comments import CommentManager
from operalog.client.persistence import SnapshotStorage
from operalog.client.session import SessionLifecycleController
from operalog.client.store import OperaStore

__all__ = [
    "CatalogLoader",
    "CatalogStatus",
    "CommentManager",
    "OperaApiClient",
    "OperaStore",
    "RemoteCollection",
    "SessionLifecycleController",
    "SnapshotStorage",
    "search_operas",
]
