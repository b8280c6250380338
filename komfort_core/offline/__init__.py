# =============================================================================
# komfort_core/offline/__init__.py
# Local mirror and synchronized collections
# =============================================================================

from .local_mirror import LocalMirror, strip_data_uris
from .snapshot_stream import SnapshotStream, Subscription
from .collection_store import CollectionStore, DataSource, StorageMode
from .single_record_store import SingleRecordStore

__all__ = [
    "LocalMirror",
    "strip_data_uris",
    "SnapshotStream",
    "Subscription",
    "CollectionStore",
    "DataSource",
    "StorageMode",
    "SingleRecordStore",
]
