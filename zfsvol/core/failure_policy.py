"""What to do when a step of a volume operation fails.

Every best-effort step is listed here so the retry and fatality rules are
the same at every call site.
"""
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from zfsvol.core.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class FailurePolicy(str, Enum):
    PROPAGATE = "propagate"
    LOG_AND_OMIT = "log-and-omit"
    LOG_AND_CONTINUE = "log-and-continue"


POLICY = {
    ("create", "pool_create"): FailurePolicy.PROPAGATE,
    ("create", "save_state"): FailurePolicy.LOG_AND_CONTINUE,
    ("get", "mountpoint"): FailurePolicy.PROPAGATE,
    ("get", "creation"): FailurePolicy.LOG_AND_OMIT,
    ("list", "volume"): FailurePolicy.LOG_AND_CONTINUE,
    ("remove", "destroy"): FailurePolicy.PROPAGATE,
    ("remove", "save_state"): FailurePolicy.LOG_AND_CONTINUE,
    ("remove", "cleanup_mountpoint"): FailurePolicy.LOG_AND_CONTINUE,
}


def policy_for(operation: str, step: str) -> FailurePolicy:
    """Look up the policy for a step; unknown steps propagate."""
    return POLICY.get((operation, step), FailurePolicy.PROPAGATE)


def run_step(
    operation: str,
    step: str,
    func: Callable[..., T],
    *args: Any,
    context: str = "",
) -> Optional[T]:
    """Run one step of an operation under its failure policy.

    Returns the step's result, or None when a tolerated failure was logged.
    """
    policy = policy_for(operation, step)
    try:
        return func(*args)
    except Exception as e:
        if policy == FailurePolicy.PROPAGATE:
            raise
        suffix = f" ({context})" if context else ""
        if policy == FailurePolicy.LOG_AND_OMIT:
            logger.error(f"{operation}: {step} unavailable{suffix}: {e}")
        else:
            logger.warning(f"{operation}: {step} failed{suffix}: {e}")
        return None
