import json
import logging
import uuid
from typing import Any, Optional

PII_FIELDS = ("email", "phone", "full_name", "password", "token", "api_key")


def redact_pii(obj: Any) -> Any:
    """Return a copy of ``obj`` with PII-looking keys masked, recursively."""
    if isinstance(obj, list):
        return [redact_pii(item) for item in obj]
    if not isinstance(obj, dict):
        return obj

    redacted = {}
    for key, value in obj.items():
        lower_key = str(key).lower()
        if any(field in lower_key for field in PII_FIELDS):
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = redact_pii(value)
    return redacted


class ServiceLogger(logging.LoggerAdapter):
    """
    Prefixes messages with the handler name and request id, and renders
    structured ``data`` (PII redacted) after the message.
    """

    def process(self, msg, kwargs):
        data = kwargs.pop("data", None)
        prefix = f"[{self.extra['function']}] [{self.extra['request_id']}]"
        if data is not None:
            msg = f"{msg} {json.dumps(redact_pii(data), default=str)}"
        return f"{prefix} {msg}", kwargs


def get_logger(function: str, request_id: Optional[str] = None) -> ServiceLogger:
    return ServiceLogger(
        logging.getLogger(function),
        {"function": function, "request_id": request_id or str(uuid.uuid4())},
    )
