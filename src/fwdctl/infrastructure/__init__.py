"""Infrastructure layer — database engine, schema, repositories, store.

This layer depends on stdlib, third-party libs (SQLAlchemy), and
``fwdctl.errors`` for the exceptions it raises.
It must never import from domain, services, commands, or output.
Repositories exchange plain dicts; the service layer maps them to domain models.
"""
