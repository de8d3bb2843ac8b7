"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Cross-cutting types, messages and exceptions
- music/: Track, queue state and endpoint event domain logic
"""

from jefferson_player.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
