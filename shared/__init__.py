"""
Shared utilities for the record-lookup extraction worker.

This package is intentionally small and focused. It provides:

- `shared.config` for environment-based configuration
- `shared.logging` for structlog-based structured logging

The worker treats `shared/` as infrastructure code and avoids introducing
pipeline-specific coupling here.
"""
