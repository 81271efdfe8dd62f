"""Configuration constants and built-in defaults.

Values here seed the pydantic models in models.py. Anything a user might
reasonably want to change is exposed there; the rest stays here.
"""

# =============================================================================
# Symbol classification defaults
# =============================================================================

DEFAULT_INTERFACE_BASES: tuple[str, ...] = (
    "abc.ABC",
    "abc.ABCMeta",
    "typing.Protocol",
    "typing_extensions.Protocol",
)
"""Bases (or metaclasses) that make a class an interface."""

DEFAULT_ABSTRACT_DECORATORS: tuple[str, ...] = ("abstractmethod",)
"""Decorator names that mark a method declaration as abstract."""

DEFAULT_DEPRECATION_DECORATORS: tuple[str, ...] = ("deprecated",)
"""Decorator names that mark a method as deprecated (warnings / typing_extensions)."""

DEFAULT_MARKER_PATTERN = "Use "
"""Text in a deprecation message that precedes the successor method name."""

# =============================================================================
# Internal Implementation Constants
# =============================================================================

ANCESTOR_WALK_DEPTH_DEFAULT = 256
"""Default bound on parent hops during enclosing-class lookup."""

CONFIG_DIR_NAME = ".codeweave"
"""Per-codebase configuration directory."""

DIGEST_LENGTH = 12
"""Hex characters kept from sha256 content digests."""
