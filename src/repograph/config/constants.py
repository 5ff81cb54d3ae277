"""Configuration constants.

Values that are implementation details rather than deployment choices.
For configurable values, see models.py.
"""

# =============================================================================
# Provider API page sizes
# =============================================================================
# Commits-since queries read a single page; drift larger than the page is
# reported truncated rather than paginated.

GITHUB_COMMITS_PAGE = 100
"""Commits returned by one GitHub commits listing."""

GITLAB_COMMITS_PAGE = 100
"""Commits returned by one GitLab commits listing."""

BITBUCKET_COMMITS_PAGE = 50
"""Commits returned by one Bitbucket commits listing."""

BRANCHES_PAGE = 100
"""Branches requested per listing call."""

DEFAULT_BRANCH_CANDIDATES = ("main", "master", "develop", "trunk")
"""Probed in order when a provider does not report a default branch."""

FALLBACK_BRANCH = "main"
"""Returned by get_default_branch when every lookup fails."""

# =============================================================================
# Symbol extraction scan windows
# =============================================================================

BRACE_SCAN_WINDOW = 500
"""Lines scanned past a declaration to find its closing brace."""

TYPE_SCAN_WINDOW = 100
"""Lines scanned for interface and type-alias bodies."""

FALLBACK_SPAN = 10
"""End line offset used when no closing brace is found."""

SIGNATURE_MAX_CHARS = 200
"""Declaration lines longer than this are truncated in stored signatures."""

MAX_FILE_SIZE_BYTES = 1_000_000
"""Files larger than this are recorded but not scanned for symbols."""

# =============================================================================
# Checkout
# =============================================================================

CHECKOUT_DIR_NAME = "repo"
"""Working copy lives at <base_path>/<repo_id>/<CHECKOUT_DIR_NAME>."""

QUARANTINE_MARKER = "_quarantine_"
"""Infix of renamed directories that could not be deleted."""
