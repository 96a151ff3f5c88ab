# ============================================================================
# EXCEPTIONS
# ============================================================================
# STATUS: Shared - used by pipeline, serving and API layers
# PURPOSE: Exception hierarchy separating contract violations from business failures
# EXPORTS: ContractViolationError, BusinessLogicError, ResourceNotFoundError,
#          GridTableNotFoundError, ValidationError, QueryCancelledError,
#          PipelineError, ConfigurationError
# DEPENDENCIES: None (standard library only)
# ============================================================================

"""
Custom Exception Hierarchy

Distinguishes between:
1. Contract Violations (programming bugs that need fixing)
2. Business Logic Failures (expected runtime issues)

Malformed upstream reward payloads are NOT exceptions at all: the
normalizer counts and logs them and the batch keeps going. Exceptions
are reserved for conditions the caller must react to.
"""


class ContractViolationError(TypeError):
    """
    Raised when component contracts are violated (programming bugs).

    These indicate:
    - Wrong types passed to functions
    - Handler returning something other than the success/failure dict
    - Enum type mismatches

    These should NEVER be caught and handled - they indicate bugs
    that need to be fixed in the code.
    """
    pass


class BusinessLogicError(Exception):
    """
    Base class for expected runtime business logic failures.

    These are normal failures that occur during system operation
    and should be handled gracefully without crashing.
    """
    pass


class ResourceNotFoundError(BusinessLogicError):
    """
    Requested resource does not exist.

    Examples:
        - Grid table not built yet for a resolution
        - Raw reward source file missing
    """
    pass


class GridTableNotFoundError(ResourceNotFoundError):
    """
    The persisted grid table for a resolution does not exist.

    Reported to query callers as a not-found condition (HTTP 404).
    """

    def __init__(self, resolution: int, path: str):
        self.resolution = resolution
        self.path = path
        super().__init__(f"Grid table for resolution {resolution} not found: {path}")


class ValidationError(BusinessLogicError):
    """
    Business validation failed.

    Note: This is different from ContractViolationError.
    This is for request/parameter validation, not type contracts.

    Examples:
        - Polygon parameter is not valid JSON
        - H3 resolution outside 0-15
        - Unknown measure field name
    """
    pass


class QueryCancelledError(BusinessLogicError):
    """
    A query was cancelled cooperatively before it completed.

    Raised at an I/O boundary once the caller's cancellation token fires.
    Callers that cancel on purpose simply discard it.
    """
    pass


class PipelineError(BusinessLogicError):
    """
    Batch grid refresh failed.

    Examples:
        - Source file is not a JSON array / JSON Lines file
        - Grid table could not be written
    """
    pass


class ConfigurationError(Exception):
    """
    System configuration error.

    These are typically fatal and indicate misconfiguration
    that prevents the system from operating.

    Examples:
        - Non-numeric H3_DEFAULT_RESOLUTION
        - Negative refresh window
    """
    pass
