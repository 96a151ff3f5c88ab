"""
Service Handler Registry - Explicit Registration.

All task handlers are registered here explicitly. No decorators, no
auto-discovery. If you don't see it in ALL_HANDLERS, it's not registered.

Registration Process:
1. Write the handler in its service module (e.g. services/h3_aggregation/)
2. Add it to that module's ALL_HANDLERS dict
3. Merge the module registry below

Handler Function Contract (enforced by run_handler):
    def handler(params: Dict[str, Any], context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:

    SUCCESS FORMAT:
        {
            "success": True,        # REQUIRED - Must be boolean True
            "result": {...}         # Optional - Handler results
        }

    FAILURE FORMAT:
        {
            "success": False,       # REQUIRED - Must be boolean False
            "error": "error message",  # REQUIRED - Describe what went wrong
            "error_type": "ValueError" # Optional - Exception type name
        }

    CONTRACT ENFORCEMENT:
        - Non-dict return value → ContractViolationError
        - Missing or non-boolean 'success' → ContractViolationError
        - Failure without 'error' → ContractViolationError
"""

from typing import Any, Callable, Dict, Optional

from exceptions import ContractViolationError
from .h3_aggregation import ALL_HANDLERS as H3_AGG_HANDLERS

# ============================================================================
# EXPLICIT HANDLER REGISTRY
# ============================================================================

ALL_HANDLERS: Dict[str, Callable] = {}
ALL_HANDLERS.update(H3_AGG_HANDLERS)

# ============================================================================
# VALIDATION
# ============================================================================

def validate_handler_registry():
    """
    Validate all handlers in registry on startup.

    This catches configuration errors at import time, not when a task
    tries to execute.
    """
    for task_type, handler in ALL_HANDLERS.items():
        if not callable(handler):
            raise ValueError(
                f"Handler for '{task_type}' is not callable. "
                f"Got {type(handler).__name__} instead of function."
            )

    return True


def get_handler(task_type: str):
    """
    Get handler function by task type.

    Raises:
        ValueError: If task_type not in registry
    """
    if task_type not in ALL_HANDLERS:
        available = list(ALL_HANDLERS.keys())
        raise ValueError(
            f"Unknown task type: '{task_type}'. "
            f"Available handlers: {available}"
        )

    return ALL_HANDLERS[task_type]


def run_handler(
    task_type: str,
    params: Dict[str, Any],
    context: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Run a registered handler and enforce the result contract.

    Raises:
        ValueError: Unknown task type
        ContractViolationError: Handler returned a malformed result
    """
    handler = get_handler(task_type)
    result = handler(params, context)

    if not isinstance(result, dict):
        raise ContractViolationError(
            f"Handler '{task_type}' returned {type(result).__name__}, expected dict"
        )
    if not isinstance(result.get("success"), bool):
        raise ContractViolationError(
            f"Handler '{task_type}' result missing boolean 'success' field"
        )
    if not result["success"] and "error" not in result:
        raise ContractViolationError(
            f"Handler '{task_type}' failure result missing 'error' field"
        )
    return result


# Validate on import - fail fast if something's wrong.
validate_handler_registry()

__all__ = [
    'ALL_HANDLERS',
    'get_handler',
    'run_handler',
    'validate_handler_registry',
]
