"""Infrastructure layer: persistence adapters and the local fallback file.

Key responsibilities:
- **Settings stores**: in-memory, composite-document and row-per-field
  implementations of the persistence adapter port
- **Database access**: Async SQLAlchemy 2.0 engine, tables and repositories
- **Local fallback**: The JSON mirror used while the remote store is down
"""
