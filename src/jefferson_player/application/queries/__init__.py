"""
Application Queries (CQRS Read Side)

Query objects and handlers for read operations.
Queries do not modify state, only retrieve data.
"""

from jefferson_player.application.queries.get_queue import GetQueueQuery, QueueInfo

__all__ = [
    "GetQueueQuery",
    "QueueInfo",
]
