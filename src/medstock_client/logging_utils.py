import json
import logging
from datetime import datetime, timezone

_REDACTED_KEYS = {"token", "password", "authorization", "credential"}


def log_action(
    logger: logging.Logger,
    module: str,
    action: str,
    outcome: str,
    duration_ms: int | None = None,
    **context: object,
) -> None:
    safe_context = {key: value for key, value in context.items() if key.lower() not in _REDACTED_KEYS}
    logger.info(
        json.dumps(
            {
                "ts": datetime.now(timezone.utc).isoformat(),
                "level": "INFO",
                "module": module,
                "action": action,
                "outcome": outcome,
                "duration_ms": duration_ms,
                **safe_context,
            },
            default=str,
        )
    )
