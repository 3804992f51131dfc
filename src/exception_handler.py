import logging
import traceback
from typing import Dict, Any, List

import redis


class ErrorHandler:
    """Centralized error handling and logging for snippet import and sync."""

    def __init__(self, log_level: str = "INFO", max_errors: int | None = 1000):
        self.logger = self._setup_logging(log_level)
        self.max_errors = max_errors
        self.errors: List[Dict[str, Any]] = []

    def _setup_logging(self, level: str) -> logging.Logger:
        """Configure structured logging."""
        logger = logging.getLogger("snippet_manager")
        logger.setLevel(getattr(logging, level.upper()))

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def handle_error(self, error: Exception, context: Dict[str, Any]) -> Dict[str, Any]:
        """Process and log error with context information."""
        error_info = {
            "type": type(error).__name__,
            "message": str(error),
            "context": context,
            "traceback": traceback.format_exc() if self.logger.level <= logging.DEBUG else None
        }

        self.logger.error(
            f"{error_info['type']}: {error_info['message']} | Context: {context}"
        )

        # Store for aggregation, keeping only the newest entries
        self.errors.append(error_info)
        if self.max_errors is not None and len(self.errors) > self.max_errors:
            del self.errors[: len(self.errors) - self.max_errors]

        return error_info

    def collect_record_error(self, error: Exception, index: int, operation: str, *, title: str | None = None) -> Dict[str, Any]:
        """Collect an error raised while handling one imported record."""
        context = {
            "record": index,
            "operation": operation,
            "title": title or "untitled",
        }
        return self.handle_error(error, context)

    def collect_sync_error(self, error: Exception, user_id: str, stage: str) -> Dict[str, Any]:
        """Collect an error raised while following a user's change feed."""
        context = {
            "user_id": user_id,
            "stage": stage,
            "sync": True
        }
        return self.handle_error(error, context)

    def should_retry(self, error: Exception) -> bool:
        """Determine if error is retryable."""
        retryable_types = (
            redis.ConnectionError,
            redis.TimeoutError,
            TimeoutError,
        )

        return isinstance(error, retryable_types)

    def get_error_summary(self) -> Dict[str, Any]:
        """Generate summary of all collected errors."""
        if not self.errors:
            return {"total_errors": 0, "error_types": {}, "failed_records": []}

        error_types = {}
        failed_records = []

        for error in self.errors:
            error_type = error["type"]
            error_types[error_type] = error_types.get(error_type, 0) + 1

            context = error.get("context", {})
            if "record" in context:
                failed_records.append({
                    "record": context["record"],
                    "title": context.get("title", "untitled"),
                    "error": error["message"],
                    "operation": context.get("operation", "unknown")
                })

        return {
            "total_errors": len(self.errors),
            "error_types": error_types,
            "failed_records": failed_records
        }

    def clear_errors(self):
        """Clear collected errors."""
        self.errors.clear()

    def format_error_report(self) -> str:
        """Format user-friendly error report."""
        summary = self.get_error_summary()

        if summary["total_errors"] == 0:
            return ""

        lines = [
            f"\n⚠️  Error Summary: {summary['total_errors']} errors occurred",
            ""
        ]

        if summary["error_types"]:
            lines.append("Error Types:")
            for error_type, count in summary["error_types"].items():
                lines.append(f"  • {error_type}: {count}")
            lines.append("")

        if summary["failed_records"]:
            lines.append("Failed Records:")
            for failure in summary["failed_records"][:5]:  # Show first 5
                lines.append(f"  • #{failure['record']} {failure['title']}: {failure['error']}")

            if len(summary["failed_records"]) > 5:
                lines.append(f"  ... and {len(summary['failed_records']) - 5} more")

        return "\n".join(lines)


# Global error handler instance
error_handler = ErrorHandler()
