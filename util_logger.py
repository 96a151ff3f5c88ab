"""
Unified Logger System.

JSON-only structured logging for the reward grid pipeline and query API.

Design Principles:
    - Strong typing with dataclasses
    - Enum safety for categories
    - Component-specific loggers
    - Clean factory pattern

Exports:
    ComponentType: Enum for component types
    LogLevel: Enum for log levels
    LogContext: Logging context dataclass
    LoggerFactory: Factory for creating loggers
    ContextLoggerAdapter: Run/request correlation over a component logger
    JSONFormatter: One JSON object per log line
    log_exceptions: Exception logging decorator
    get_memory_stats: Memory/CPU statistics helper
    log_memory_checkpoint: Resource checkpoint logger (memory, duration)

Dependencies:
    psutil (memory tracking in debug mode)
    config (lazy import for debug mode check)
"""

from enum import Enum
from typing import Optional, Dict, Any, Union
from datetime import datetime, timezone
from dataclasses import dataclass
import logging
import sys
import os
import json
import time
import traceback
from functools import wraps

import psutil


# ============================================================================
# CHECKPOINT TIMING - Track duration between checkpoints
# ============================================================================
# Key format: context id (run_id, request_id) -> last checkpoint timestamp
_checkpoint_times: Dict[str, float] = {}


def get_memory_stats() -> Optional[Dict[str, float]]:
    """
    Get current process memory and CPU statistics.

    Only executes if debug mode is enabled in config.

    Returns:
        dict with resource stats or None if debug disabled
        {
            'process_rss_mb': float,      # Resident Set Size (actual RAM used)
            'process_vms_mb': float,      # Virtual Memory Size
            'process_cpu_percent': float,
            'system_available_mb': float,
            'system_percent': float
        }
    """
    _logger = logging.getLogger("util_logger.memory_stats")

    try:
        from config import get_config
        if not get_config().debug_mode:
            return None
    except Exception as e:
        _logger.warning(f"⚠️ DEBUG_MODE check failed (memory stats disabled): {e}")
        return None

    process = psutil.Process(os.getpid())
    mem_info = process.memory_info()
    system_mem = psutil.virtual_memory()

    return {
        'process_rss_mb': round(mem_info.rss / (1024**2), 1),
        'process_vms_mb': round(mem_info.vms / (1024**2), 1),
        'process_cpu_percent': process.cpu_percent(interval=None),
        'system_available_mb': round(system_mem.available / (1024**2), 1),
        'system_percent': system_mem.percent,
    }


def log_memory_checkpoint(
    logger: Union[logging.Logger, logging.LoggerAdapter],
    checkpoint_name: str,
    context_id: Optional[str] = None,
    **extra_fields
) -> None:
    """
    Log a resource checkpoint (memory + time since previous checkpoint).

    No-op unless debug mode is on.

    Args:
        logger: Logger to emit on
        checkpoint_name: Human-readable stage name ("after aggregation")
        context_id: Correlation id used to compute duration between checkpoints
        **extra_fields: Added to custom dimensions (row counts, etc.)
    """
    stats = get_memory_stats()
    if stats is None:
        return

    now = time.monotonic()
    dims: Dict[str, Any] = dict(stats)
    dims['checkpoint'] = checkpoint_name
    if context_id:
        previous = _checkpoint_times.get(context_id)
        if previous is not None:
            dims['duration_since_last_ms'] = round((now - previous) * 1000, 1)
        _checkpoint_times[context_id] = now
        dims['context_id'] = context_id
    dims.update(extra_fields)

    logger.debug(
        f"📊 MEMORY CHECKPOINT: {checkpoint_name} (rss={stats['process_rss_mb']}MB)",
        extra={'custom_dimensions': dims}
    )


def clear_checkpoint_context(context_id: str) -> None:
    """Forget checkpoint timing for a finished run."""
    _checkpoint_times.pop(context_id, None)


# ============================================================================
# COMPONENT TYPES
# ============================================================================

class ComponentType(Enum):
    """
    Component types aligned with the layered architecture.

    Each layer has specific logging needs and levels.
    """
    SERVICE = "service"        # Business logic layer (normalizer, aggregator, scenario)
    REPOSITORY = "repository"  # Data access layer (grid table, registry, forecasts)
    TRIGGER = "trigger"        # Entry point layer (HTTP API)
    JOB = "job"                # Batch handlers (grid refresh)


# ============================================================================
# LOG LEVELS - Standard Python levels with enum safety
# ============================================================================

class LogLevel(Enum):
    """
    Standard Python log levels as enum for type safety.
    """
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def to_python_level(self) -> int:
        """Convert to Python logging level constant."""
        return getattr(logging, self.value)

    @classmethod
    def from_string(cls, level: str) -> 'LogLevel':
        """Create from string, case-insensitive."""
        return cls[level.upper()]


# ============================================================================
# LOG CONTEXT - Correlation and tracking
# ============================================================================

@dataclass
class LogContext:
    """
    Context for log correlation across operations.

    A batch refresh carries a run_id; a served query carries a request_id.
    """
    run_id: Optional[str] = None  # Batch refresh run
    handler: Optional[str] = None  # Handler name (h3_reward_grid_refresh)
    request_id: Optional[str] = None  # HTTP request ID
    resolution: Optional[int] = None  # H3 resolution being processed

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            k: v for k, v in {
                'run_id': self.run_id,
                'handler': self.handler,
                'request_id': self.request_id,
                'resolution': self.resolution,
            }.items() if v is not None
        }


# ============================================================================
# COMPONENT CONFIGURATION - Per-component settings
# ============================================================================

@dataclass
class ComponentConfig:
    """
    Configuration for component-specific logging.
    """
    component_type: ComponentType
    log_level: LogLevel = LogLevel.INFO
    enable_performance_logging: bool = False


# ============================================================================
# JSON FORMATTER - Structured logging
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    Outputs one JSON object per record so log shippers can parse it directly.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Python LogRecord to format

        Returns:
            JSON string with structured log data
        """
        log_obj = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name,
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if hasattr(record, 'custom_dimensions'):
            log_obj['customDimensions'] = record.custom_dimensions

        if record.exc_info:
            log_obj['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': self.formatException(record.exc_info)
            }

        return json.dumps(log_obj, default=str)


# ============================================================================
# LOGGER FACTORY - Creates component-specific loggers
# ============================================================================

class LoggerFactory:
    """
    Factory for creating component-specific loggers.

    Example:
        logger = LoggerFactory.create_logger(
            ComponentType.SERVICE,
            "HexGridAggregator"
        )
        logger.info("Aggregating rows")
    """

    _default_level = LogLevel.DEBUG if os.getenv('DEBUG_LOGGING', '').lower() == 'true' else LogLevel.INFO

    DEFAULT_CONFIGS = {
        ComponentType.SERVICE: ComponentConfig(
            component_type=ComponentType.SERVICE,
            log_level=_default_level,
            enable_performance_logging=True
        ),
        ComponentType.REPOSITORY: ComponentConfig(
            component_type=ComponentType.REPOSITORY,
            log_level=_default_level
        ),
        ComponentType.TRIGGER: ComponentConfig(
            component_type=ComponentType.TRIGGER,
            log_level=_default_level,
            enable_performance_logging=True
        ),
        ComponentType.JOB: ComponentConfig(
            component_type=ComponentType.JOB,
            log_level=_default_level,
            enable_performance_logging=True
        ),
    }

    @classmethod
    def set_level(cls, level: str) -> None:
        """
        Apply a level (e.g. AppConfig.log_level) to every component.

        Updates the defaults used by later create_logger calls and the
        loggers and handlers already created under a component prefix.
        """
        log_level = LogLevel.from_string(level)
        for component_config in cls.DEFAULT_CONFIGS.values():
            component_config.log_level = log_level

        prefixes = tuple(f"{c.value}." for c in ComponentType)
        python_level = log_level.to_python_level()
        for logger_name in list(logging.root.manager.loggerDict):
            if not logger_name.startswith(prefixes):
                continue
            existing = logging.getLogger(logger_name)
            existing.setLevel(python_level)
            for handler in existing.handlers:
                handler.setLevel(python_level)

    @classmethod
    def create_logger(
        cls,
        component_type: ComponentType,
        name: str,
        context: Optional[LogContext] = None,
        config: Optional[ComponentConfig] = None
    ) -> logging.Logger:
        """
        Create a logger for a specific component.

        Args:
            component_type: Type of component
            name: Component name (e.g., "RewardNormalizer")
            context: Optional log context for correlation
            config: Optional custom configuration

        Returns:
            Configured Python logger
        """
        if config is None:
            config = cls.DEFAULT_CONFIGS.get(
                component_type,
                ComponentConfig(component_type=component_type)
            )

        logger_name = f"{component_type.value}.{name}"
        logger = logging.getLogger(logger_name)

        log_level = config.log_level.to_python_level()
        logger.setLevel(log_level)

        # Only one JSON handler per logger, even if create_logger runs repeatedly
        has_json_handler = any(
            isinstance(h.formatter, JSONFormatter) for h in logger.handlers
        )
        if not has_json_handler:
            handler = logging.StreamHandler(sys.stdout)
            handler.setLevel(log_level)
            handler.setFormatter(JSONFormatter())
            logger.addHandler(handler)

        logger.propagate = True

        # Inject context as custom dimensions (wrap once per logger)
        if not hasattr(logger, '_context_wrapped'):
            original_log = logger._log

            def log_with_context(level, msg, args, exc_info=None, extra=None, stack_info=False, stacklevel=1):
                """Wrapper to inject context as custom dimensions."""
                if extra is None:
                    extra = {}

                if context:
                    custom_dims = context.to_dict()
                    custom_dims['component_type'] = component_type.value
                    custom_dims['component_name'] = name
                else:
                    custom_dims = {
                        'component_type': component_type.value,
                        'component_name': name
                    }

                if 'custom_dimensions' in extra:
                    custom_dims.update(extra['custom_dimensions'])

                extra['custom_dimensions'] = custom_dims

                # +1 to account for this wrapper function
                original_log(level, msg, args, exc_info=exc_info, extra=extra,
                             stack_info=stack_info, stacklevel=stacklevel + 1)

            logger._log = log_with_context
            logger._context_wrapped = True

        return logger

    @classmethod
    def create_with_context(
        cls,
        component_type: ComponentType,
        name: str,
        run_id: Optional[str] = None,
        request_id: Optional[str] = None,
        resolution: Optional[int] = None
    ) -> "ContextLoggerAdapter":
        """
        Create logger with run/request context.

        The component logger keeps its fixed name; the correlation ids ride
        on an adapter that adds them to every record's custom dimensions.
        Nothing is registered per run or per request.

        Args:
            component_type: Type of component
            name: Component name
            run_id: Optional batch run ID
            request_id: Optional HTTP request ID
            resolution: Optional H3 resolution

        Returns:
            ContextLoggerAdapter over the component logger
        """
        context = LogContext(
            run_id=run_id,
            handler=name,
            request_id=request_id,
            resolution=resolution
        )
        return ContextLoggerAdapter(
            cls.create_logger(component_type=component_type, name=name),
            context
        )


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    Adds a LogContext to the custom dimensions of each record.

    Per-call ``extra={'custom_dimensions': ...}`` is merged on top.
    """

    def __init__(self, logger: logging.Logger, context: LogContext):
        super().__init__(logger, {})
        self.context = context

    def process(self, msg, kwargs):
        extra = dict(kwargs.get('extra') or {})
        dims = self.context.to_dict()
        dims.update(extra.get('custom_dimensions') or {})
        extra['custom_dimensions'] = dims
        kwargs['extra'] = extra
        return msg, kwargs


# ============================================================================
# EXCEPTION DECORATOR - Automatic exception logging with context
# ============================================================================

def log_exceptions(component_type: Optional[ComponentType] = None,
                   component_name: Optional[str] = None,
                   logger: Optional[logging.Logger] = None):
    """
    Decorator to automatically log exceptions with full context.

    Can be used in three ways:
    1. With existing logger: @log_exceptions(logger=my_logger)
    2. With component info: @log_exceptions(ComponentType.REPOSITORY, "GridTableRepository")
    3. Simple: @log_exceptions() - uses function module and name

    The exception is always re-raised.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if logger:
                log = logger
            elif component_type and component_name:
                log = LoggerFactory.create_logger(component_type, component_name)
            else:
                log = LoggerFactory.create_logger(
                    ComponentType.SERVICE,
                    func.__module__ or "unknown"
                )

            try:
                return func(*args, **kwargs)
            except Exception as e:
                log.error(
                    f"Exception in {func.__name__}",
                    exc_info=True,
                    extra={
                        'custom_dimensions': {
                            'function_name': func.__name__,
                            'function_module': func.__module__,
                            'exception_type': type(e).__name__,
                            'exception_message': str(e),
                            'function_args': str(args)[:500],
                            'function_kwargs': str(kwargs)[:500],
                            'traceback': traceback.format_exc()
                        }
                    }
                )
                raise
        return wrapper
    return decorator
