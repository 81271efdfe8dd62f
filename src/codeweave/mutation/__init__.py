"""Mutation operations module - atomic application of rewrite plans."""

from codeweave.mutation.ops import BatchEditApplicator, CommitResult, FileDelta

__all__ = ["BatchEditApplicator", "CommitResult", "FileDelta"]
