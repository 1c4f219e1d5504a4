"""
Shared infrastructure for the catalog extraction pipeline.

This package is intentionally small and focused. It provides:

- `shared.config` for environment-based configuration
- `shared.logging` for structlog-based structured logging
- `shared.schema` for the SQLAlchemy Core table definitions
- `shared.db` for database connection and session management
- `shared.repository` for the record cache and scrape session queries

The extractor treats `shared/` as infrastructure code and avoids introducing
extraction-specific coupling here.
"""
