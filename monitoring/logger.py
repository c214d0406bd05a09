"""
Structured logging for the BlitzProof Score Engine
Console and rotating-file outputs, JSON/colored/plain formatters, score events
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from utils.errors import CollectorError, PersistenceError, ValidationError

# Custom log level for score computations
SCORE_LOG = 25  # Between INFO and WARNING

logging.addLevelName(SCORE_LOG, "SCORE")

logger = logging.getLogger(__name__)


class StructuredLogger:
    """
    Structured logging system with multiple outputs
    """

    def __init__(self, name: str = "BlitzProof", config: Optional[Dict] = None):
        """Initialize structured logger"""
        self.name = name

        default_config = self._default_config()
        if config:
            default_config.update(config)

        self.config = default_config
        self.setup_logging()

    def _default_config(self) -> Dict:
        """Default logging configuration"""
        return {
            "log_level": "INFO",
            "log_dir": "logs",
            "max_file_size": 10 * 1024 * 1024,  # 10MB
            "backup_count": 10,
            "format": "json",  # json or text
            "outputs": ["console", "file"],
            "error_tracking": True
        }

    def _get_formatter(self, output_type: str) -> logging.Formatter:
        """Get appropriate formatter for output type"""
        if output_type == "console":
            return ColoredFormatter(StandardFormatter.FORMAT, datefmt=StandardFormatter.DATEFMT)
        if self.config["format"] == "json":
            return JsonFormatter()
        return StandardFormatter()

    def log_score(self, token_id: str, score: Dict[str, Any]) -> None:
        """
        Log a computed or overridden score

        Args:
            token_id: Token the score belongs to
            score: Score in its JSON form
        """
        score_logger = logging.getLogger(f"{self.name}.scores")

        score_data = {
            "token_id": token_id,
            "overall_score": score.get("overallScore"),
            "rating": score.get("rating"),
            "categories": score.get("categories", {}),
            "updated_by": score.get("updatedBy"),
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        score_logger.log(
            SCORE_LOG,
            f"Score {token_id}: {score_data['overall_score']} ({score_data['rating']})",
            extra={"score_data": score_data}
        )

    def log_error(self, error: Exception, context: Dict) -> None:
        """
        Log error with context

        Args:
            error: Exception that occurred
            context: Dictionary containing error context
        """
        error_logger = logging.getLogger(f"{self.name}.errors")
        where = context.get("operation", "unknown")

        error_data = {
            "error_type": type(error).__name__,
            "error_message": str(error),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "context": context,
            "traceback": traceback.format_exc()
        }

        # Severity by error type
        if isinstance(error, ValidationError):
            error_logger.warning(f"Rejected input in {where}: {error}", extra={"error_data": error_data})
        elif isinstance(error, CollectorError):
            error_logger.warning(f"Upstream failure in {where}: {error}", extra={"error_data": error_data})
        elif isinstance(error, (PersistenceError, ConnectionError, TimeoutError)):
            error_logger.error(f"Storage/network error in {where}: {error}", extra={"error_data": error_data})
        else:
            error_logger.error(
                f"Unexpected error in {where}: {error}",
                extra={"error_data": error_data},
                exc_info=error
            )

    def setup_logging(self, config: Optional[Dict] = None) -> None:
        """
        Setup logging configuration

        Args:
            config: Optional configuration dictionary
        """
        if config:
            self.config.update(config)

        root = logging.getLogger()
        root.setLevel(getattr(logging, str(self.config["log_level"]).upper(), logging.INFO))

        # Remove existing handlers
        root.handlers = []

        if "console" in self.config["outputs"]:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(self._get_formatter("console"))
            root.addHandler(console_handler)

        if "file" in self.config["outputs"]:
            log_dir = Path(self.config["log_dir"])
            log_dir.mkdir(parents=True, exist_ok=True)

            file_handler = RotatingFileHandler(
                log_dir / f"{self.name.lower()}.log",
                maxBytes=self.config["max_file_size"],
                backupCount=self.config["backup_count"]
            )
            file_handler.setFormatter(self._get_formatter("file"))
            root.addHandler(file_handler)

            # Separate error log
            if self.config["error_tracking"]:
                error_handler = RotatingFileHandler(
                    log_dir / f"{self.name.lower()}_errors.log",
                    maxBytes=self.config["max_file_size"],
                    backupCount=self.config["backup_count"]
                )
                error_handler.setLevel(logging.ERROR)
                error_handler.setFormatter(self._get_formatter("file"))
                root.addHandler(error_handler)

        if config:
            logger.info(f"Logging reconfigured with: {config}")


class JsonFormatter(logging.Formatter):
    """JSON log formatter"""

    def format(self, record):
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'score_data'):
            log_obj["score"] = record.score_data

        if hasattr(record, 'error_data'):
            log_obj["error"] = record.error_data

        return json.dumps(log_obj, default=str)


class ColoredFormatter(logging.Formatter):
    """Colored console formatter"""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'SCORE': '\033[35m',     # Magenta
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[41m'   # Red Background
    }
    RESET = '\033[0m'

    def format(self, record):
        levelname = record.levelname
        record.levelname = f"{self.COLORS.get(levelname, '')}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class StandardFormatter(logging.Formatter):
    """Standard text formatter"""

    FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    DATEFMT = '%Y-%m-%d %H:%M:%S'

    def __init__(self):
        super().__init__(self.FORMAT, datefmt=self.DATEFMT)
