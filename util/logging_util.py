import logging
import sys

# Configure logging format
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, level=logging.INFO) -> logging.Logger:
    """
    Sets up a logger with consistent formatting.

    Args:
        name: Name of the logger (typically __name__ from the calling module)
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid adding handlers multiple times
    if not logger.handlers:
        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)

        # Formatter
        formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
        console_handler.setFormatter(formatter)

        logger.addHandler(console_handler)

    return logger

def log_upsert_summary(logger: logging.Logger, summary, duration_ms: float = None):
    """
    Logs the outcome of a batch upsert.

    Args:
        logger: Logger instance to use
        summary: UpsertSummary returned by the store
        duration_ms: Optional duration of the transaction in milliseconds
    """
    duration_str = f" ({duration_ms:.2f}ms)" if duration_ms else ""
    logger.info(
        f"Upserted batch{duration_str} - inserted: {summary.inserted}, "
        f"updated: {summary.updated}, skipped: {summary.skipped}, "
        f"rejected: {summary.rejected}"
    )
    if summary.memberships_added:
        logger.info(f"  Auto-classified into {summary.memberships_added} new collection slot(s)")
