"""Sanitized logging utilities for dupscan.

Table cells routinely carry personal data (names, emails, addresses), so
every structured context is sanitized before it reaches the log output.
"""
import json
import logging
import re
from typing import Any, Iterable, Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger('dupscan')


def configure_logging(level: str = "INFO", fmt: Optional[str] = None) -> None:
    """Apply the configured level (and optionally format) to the dupscan logger."""
    logger.setLevel(level.upper())
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt, datefmt='%Y-%m-%d %H:%M:%S'))


def sanitize_text(text: str) -> str:
    """Remove sensitive information from text.

    Args:
        text: Input text that may contain sensitive data

    Returns:
        Sanitized text with sensitive patterns replaced
    """
    if not text:
        return text

    # Email addresses
    text = re.sub(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}', '<email>', text)

    # API keys and tokens (common patterns)
    text = re.sub(r'sk-[a-zA-Z0-9]{20,}', '<api-key>', text)
    text = re.sub(r'[a-zA-Z0-9]{32,}', '<token>', text)

    # URLs with potential sensitive data
    text = re.sub(r'https?://[^\s]+', '<url>', text)

    # UUIDs
    text = re.sub(r'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}', '<uuid>', text, flags=re.IGNORECASE)

    # Long hex strings (full digests)
    text = re.sub(r'\b[0-9a-f]{24,}\b', '<hash>', text, flags=re.IGNORECASE)

    return text


def safe_json(obj: Any, max_length: int = 1000) -> str:
    """Safely serialize object to JSON with sensitive data sanitized.

    Args:
        obj: Object to serialize
        max_length: Maximum length of output string

    Returns:
        Sanitized JSON string
    """
    try:
        json_str = json.dumps(obj, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return "<unable to serialize>"

    sanitized = sanitize_text(json_str)
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "... [truncated]"
    return sanitized


def log_info(message: str, **kwargs) -> None:
    """Log info message with optional sanitized context."""
    if kwargs:
        context = safe_json(kwargs)
        logger.info(f"{message} | Context: {context}")
    else:
        logger.info(message)


def log_warning(message: str, **kwargs) -> None:
    """Log warning message with optional sanitized context."""
    if kwargs:
        context = safe_json(kwargs)
        logger.warning(f"{message} | Context: {context}")
    else:
        logger.warning(message)


def log_error(message: str, **kwargs) -> None:
    """Log error message with optional sanitized context."""
    if kwargs:
        context = safe_json(kwargs)
        logger.error(f"{message} | Context: {context}")
    else:
        logger.error(message)


def log_debug(message: str, **kwargs) -> None:
    """Log debug message with optional sanitized context."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    if kwargs:
        context = safe_json(kwargs)
        logger.debug(f"{message} | Context: {context}")
    else:
        logger.debug(message)


def log_duplicate_group(anchor_index: int, member_indices: Iterable[int], confidence: float, **kwargs) -> None:
    """Log a newly emitted duplicate group.

    Args:
        anchor_index: Seed row of the group
        member_indices: Row indices in the group, seed first
        confidence: Group confidence in [0, 1]
        **kwargs: Additional context
    """
    log_debug("Duplicate group emitted",
              anchor=anchor_index,
              members=list(member_indices),
              confidence=round(confidence, 4),
              **kwargs)


def log_scan_progress(stage: str, **kwargs) -> None:
    """Log progress through a scan.

    Args:
        stage: Current stage of processing
        **kwargs: Additional context
    """
    log_info(f"Scan progress: {stage}", **kwargs)


def short_digest(digest: str, length: int = 12) -> str:
    """Shorten a hex digest for log output."""
    return digest[:length] if digest else digest
