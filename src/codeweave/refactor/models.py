"""Refactor data model: method signatures and deprecation records."""

from __future__ import annotations

from dataclasses import dataclass, field

import libcst as cst

from codeweave.core.errors import RefactorError
from codeweave.frontend.models import Symbol


@dataclass(frozen=True, slots=True)
class MethodSignature:
    """Identity of a method declared on an interface."""

    interface_name: str
    method_name: str
    declaring_file: str
    symbol: Symbol
    node: cst.FunctionDef = field(compare=False, repr=False)

    @property
    def qualified_name(self) -> str:
        return f"{self.interface_name}.{self.method_name}"


@dataclass(frozen=True, slots=True)
class ResolvedInterface:
    """An interface declaration and its method signatures, in source order."""

    name: str
    declaring_file: str
    symbol: Symbol
    methods: tuple[MethodSignature, ...]

    def method(self, name: str) -> MethodSignature:
        for signature in self.methods:
            if signature.method_name == name:
                return signature
        raise RefactorError.not_found("method", f"{self.name}.{name}", path=self.declaring_file)

    @property
    def method_names(self) -> frozenset[str]:
        return frozenset(m.method_name for m in self.methods)


@dataclass(frozen=True, slots=True)
class DeprecationRecord:
    """A deprecated interface method and the successor it forwards to."""

    obsolete: MethodSignature
    message: str
    successor: str
