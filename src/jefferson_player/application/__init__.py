"""
Application Layer

Contains use cases, command/query handlers, and application services.
This layer drives the queue controller on behalf of user actions.

Structure:
- commands/: CQRS write operations (EnqueueTrackCommand, SkipTrackCommand, etc.)
- queries/: CQRS read operations (GetQueueQuery)
- services/: The queue controller plus its retry and timer helpers
- interfaces/: Port interfaces for infrastructure adapters
"""
