"""SQL access for the document and table settings stores.

Core components:
- **base**: Declarative base and common model fields
- **models**: The ``settings_documents`` and ``vat_website`` tables
- **session**: Async engine and session management
- **repository**: Generic and per-layout async queries

All database operations are async-first, on asyncpg (PostgreSQL) or
aiosqlite (SQLite).
"""
