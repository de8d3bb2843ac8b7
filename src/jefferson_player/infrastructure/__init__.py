"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (in-memory guild queue store)
- Discord (bot, voice gateway, presentation sink)
- Audio (Lavalink endpoint and track resolver)
"""
