"""
Shared module for the infrastructure used by the REST API.

STRUCTURE:
- djstore_shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging, request id log filter

- djstore_shared.infrastructure: Database and request plumbing
  - db.py: Async engine, raw connectivity check
  - correlation.py: X-Request-ID middleware and request id context
  - retry.py: Exponential backoff with jitter

- djstore_shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - health.py: Health check decorator and report format
  - schemas.py: ListResult envelope

IMPORT EXAMPLES:
    from djstore_shared.config.settings import settings
    from djstore_shared.infrastructure.db import engine
    from djstore_shared.utils.exceptions import NotFoundError
    from djstore_shared.utils.schemas import ListResult
"""
