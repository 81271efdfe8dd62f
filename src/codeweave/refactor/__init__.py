"""Refactor operations module - aspect weaving and deprecation forwarding."""

from codeweave.refactor.ops import ForwardResult, RefactorOps, WeaveResult

__all__ = ["ForwardResult", "RefactorOps", "WeaveResult"]
