"""Checkout management."""

from repograph.checkout.cleanup import (
    CleanupMethod,
    CleanupOutcome,
    remove_tree_robust,
    sweep_quarantine,
)
from repograph.checkout.errors import CheckoutError, CleanupError, TreeRemovalError
from repograph.checkout.manager import CheckoutManager, CheckoutResult, is_safe_repo_id

__all__ = [
    "CheckoutError",
    "CheckoutManager",
    "CheckoutResult",
    "CleanupError",
    "CleanupMethod",
    "CleanupOutcome",
    "TreeRemovalError",
    "is_safe_repo_id",
    "remove_tree_robust",
    "sweep_quarantine",
]
