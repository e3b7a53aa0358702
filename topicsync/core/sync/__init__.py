"""Sync module for mirroring the topic graph between the backend and the local store.

Contains the TopicSyncService pipeline, the record fetchers it drives, and
the single-writer StoreWriter every save goes through.
"""

from topicsync.core.sync.fetchers import RecordFetcher
from topicsync.core.sync.store_writer import StoreWriter
from topicsync.core.sync.topic_sync import TopicSyncService

__all__ = ["RecordFetcher", "StoreWriter", "TopicSyncService"]
