"""Error sanitization utilities to prevent information leakage."""

import re


# Patterns that might expose sensitive information. The first group is the
# label that is kept, the second is the value that gets redacted.
SENSITIVE_PATTERNS = [
    r"(endpoint[:\s]+)([a-zA-Z0-9\-\.:/]+)",
    r"(access[_\s]?key[_\s]?id[:\s]+)([A-Za-z0-9_\-]{20,})",
    r"(secret[_\s]?access[_\s]?key[:\s]+)([A-Za-z0-9/+=_\-]{30,})",
    r"(session[_\s]?token[:\s]+)([A-Za-z0-9/+=]+)",
    r"(kms[_\s]?key[_\s]?id[:\s]+)([a-z0-9]+)",
    r"(arn:aws:s3:::)([a-zA-Z0-9\-_\.]+)",
    r"(bucket[_\s]?name[:\s]+)([a-zA-Z0-9\-_\.]+)",
    r"(provider[_\s]?name[:\s]+)([a-zA-Z0-9\-_]+)",
    r"(namespace[:\s]+)([a-zA-Z0-9\-_]+)",
]

# Yandex Cloud static access key IDs
STATIC_KEY_ID_PATTERN = r"\bYC[A-Za-z0-9_\-]{23}\b"

# Fields to redact completely
SENSITIVE_FIELDS = {
    "access_key_id",
    "secret_access_key",
    "session_token",
    "password",
    "secret",
    "credentials",
    "token",
    "key",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, r"\1[REDACTED]", sanitized, flags=re.IGNORECASE)

    sanitized = re.sub(STATIC_KEY_ID_PATTERN, "[REDACTED]", sanitized)

    # Replace "field: value" and "field=value" patterns
    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"\b{field}(\s*[:=]\s*)(?!\[REDACTED\])([^\s,;\)]+)",
            rf"{field}\1[REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))
