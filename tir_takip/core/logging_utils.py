import re
from typing import Any, Dict, Optional
from fastapi import Request

MASK = "***MASKED***"

SENSITIVE_KEY_TERMS = (
    "api_key", "apikey", "x-api-key", "api-key",
    "token", "authorization", "bearer",
    "password", "secret", "private_key",
)

SENSITIVE_HEADERS = (
    "authorization",
    "x-api-key",
    "api-key",
    "cookie",
    "set-cookie",
)

# Share tokens are 32 URL-safe characters; ids are 32 hex characters and stay readable
_SHARE_TOKEN_RE = re.compile(r'^[A-Za-z0-9_-]{32,}$')
_HEX_ID_RE = re.compile(r'^[a-f0-9]{32}$')
_PUBLIC_PATH_RE = re.compile(r'^(?P<prefix>.*/public/(?:tir|list)/)[^/]+')


def mask_phone(value: str) -> str:
    """Keep the last four digits of a phone number."""
    digits = re.sub(r'\D', '', value)
    if len(digits) <= 4:
        return MASK
    return "*" * (len(digits) - 4) + digits[-4:]


def mask_sensitive_data(data: Any, mask_string: str = MASK) -> Any:
    """
    Recursively mask sensitive values in dicts, lists and strings.

    Share tokens, API keys and secrets are replaced entirely, phone numbers
    keep their last four digits. Request ids are never masked.
    """
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()

            if key_lower in ("requestid", "request_id"):
                masked[key] = value
            elif any(term in key_lower for term in SENSITIVE_KEY_TERMS):
                masked[key] = mask_string
            elif key_lower == "phone" and isinstance(value, str):
                masked[key] = mask_phone(value)
            else:
                masked[key] = mask_sensitive_data(value, mask_string)
        return masked

    if isinstance(data, list):
        return [mask_sensitive_data(item, mask_string) for item in data]

    if isinstance(data, str):
        if _SHARE_TOKEN_RE.match(data) and not _HEX_ID_RE.match(data):
            return mask_string
        return data

    return data


def mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Mask sensitive HTTP headers."""
    return {
        key: MASK if any(sensitive in key.lower() for sensitive in SENSITIVE_HEADERS) else value
        for key, value in headers.items()
    }


def mask_path(path: str) -> str:
    """Hide the share token in /api/public/{tir,list}/<token> paths."""
    return _PUBLIC_PATH_RE.sub(lambda m: m.group("prefix") + MASK, path)


def get_request_id(request: Optional[Request]) -> Optional[str]:
    """Extract request ID from request state."""
    if request and hasattr(request.state, "request_id"):
        return request.state.request_id
    return None


def sanitize_log_message(message: str, **kwargs: Any) -> str:
    """
    Append masked context to a log message.

    ``RequestID`` (or ``request_id``) is appended last as
    ``| RequestID: <uuid>`` so the formatter can lift it into its own column.
    """
    request_id = kwargs.pop('RequestID', None) or kwargs.pop('request_id', None)

    masked_kwargs = mask_sensitive_data(kwargs)

    context_parts = []
    for key, value in masked_kwargs.items():
        if isinstance(value, (dict, list)):
            context_parts.append(f"{key}: {str(value)[:200]}")
        else:
            context_parts.append(f"{key}: {value}")

    formatted_message = message
    if context_parts:
        formatted_message = f"{message} | {' | '.join(context_parts)}"

    if request_id:
        formatted_message = f"{formatted_message} | RequestID: {request_id}"

    return formatted_message
