"""Allow ``python -m openapi_ts_client_generator``."""

from __future__ import annotations

from .cli import main

raise SystemExit(main())
