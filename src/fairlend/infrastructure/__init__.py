"""Infrastructure layer — SQLite store and the Rotessa HTTP client.

This layer depends on stdlib and third-party libs (SQLAlchemy, httpx).
It must never import from services, commands, or output.
"""
