from operalog.db.database import get_session, init_db
from operalog.db.operations import (
    WatchedFields,
    add_wishlist_entry,
    delete_watched_entries,
    delete_wishlist_entries,
    get_watched_entry,
    get_wishlist_entry,
    list_watched,
    list_wishlist,
    upsert_watched_entry,
    watched_to_model,
    wishlist_to_model,
)

__all__ = [
    "WatchedFields",
    "add_wishlist_entry",
    "delete_watched_entries",
    "delete_wishlist_entries",
    "get_session",
    "get_watched_entry",
    "get_wishlist_entry",
    "init_db",
    "list_watched",
    "list_wishlist",
    "upsert_watched_entry",
    "watched_to_model",
    "wishlist_to_model",
]
