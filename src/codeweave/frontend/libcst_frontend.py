"""Python compiler frontend built on libcst metadata.

Resolution model:
- Symbols are identified by fully qualified dotted names computed from each
  file's module path relative to its project's source root. Cross-project
  imports therefore resolve to the same names as the declarations.
- Module-level re-exports (``from .services import IAppService`` in a
  package ``__init__``) are followed, so aliases resolve to the declaring
  module.
- Class hierarchy is nominal: a class implements an interface when one of
  its bases resolves, transitively, to the interface.
- A reference to a method is an attribute access with the method's name in
  a file where the interface or one of its subclasses is visible, unless the
  receiver resolves only to an imported name outside that class family.

Parsed files are cached by (root, path, digest); an index of the class
hierarchy is cached per snapshot fingerprint.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Collection, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

import libcst as cst
import structlog
from libcst.helpers import get_full_name_for_node
from libcst.helpers.module import ModuleNameAndPackage
from libcst.metadata import (
    FullyQualifiedNameProvider,
    MetadataWrapper,
    ParentNodeProvider,
    PositionProvider,
    QualifiedName,
    QualifiedNameSource,
)

from codeweave.config.models import DiscoveryConfig
from codeweave.core.errors import RefactorError
from codeweave.frontend.discovery import read_snapshot
from codeweave.frontend.edit import TreeEditSession
from codeweave.frontend.models import (
    CallSite,
    ClassInfo,
    ImplementationSite,
    Project,
    Snapshot,
    Symbol,
)
from codeweave.frontend.storage import write_atomically

log = structlog.get_logger()


def decorator_name(decorator: cst.Decorator) -> str | None:
    """Simple name of a decorator: ``@x``, ``@a.x`` and ``@x(...)`` all give ``x``."""
    expr = decorator.decorator
    if isinstance(expr, cst.Call):
        expr = expr.func
    if isinstance(expr, cst.Name):
        return expr.value
    if isinstance(expr, cst.Attribute):
        return expr.attr.value
    return None


def is_docstring(statement: cst.BaseStatement) -> bool:
    if not isinstance(statement, cst.SimpleStatementLine) or len(statement.body) != 1:
        return False
    expr = statement.body[0]
    return isinstance(expr, cst.Expr) and isinstance(
        expr.value, (cst.SimpleString, cst.ConcatenatedString)
    )


def module_and_package(project: Project, path: str) -> ModuleNameAndPackage:
    """Dotted module name and package for a file inside a project."""
    file_path = PurePosixPath(path)
    relative = file_path
    for base in (project.source_root, project.root):
        if base == ".":
            break
        if file_path.is_relative_to(base):
            relative = file_path.relative_to(base)
            break
    parts = list(relative.with_suffix("").parts)
    if parts and parts[-1] in ("__init__", "__main__"):
        parts.pop()
        name = ".".join(parts)
        return ModuleNameAndPackage(name, name)
    return ModuleNameAndPackage(".".join(parts), ".".join(parts[:-1]))


def _absolute_module(package: str, module: str | None, dots: int) -> str | None:
    if dots == 0:
        return module
    parts = package.split(".") if package else []
    if dots - 1 > len(parts):
        return None
    base = parts[: len(parts) - (dots - 1)]
    if module:
        base.append(module)
    return ".".join(base)


class _Collector(cst.CSTVisitor):
    """Collects declarations, re-exports and attribute accesses of one module."""

    METADATA_DEPENDENCIES = (FullyQualifiedNameProvider,)

    def __init__(self, module_name: str, package: str) -> None:
        super().__init__()
        self._module_name = module_name
        self._package = package
        self._scope: list[str] = []
        self.path = ""
        self.project = ""
        self.classes: list[ClassInfo] = []
        self.declarations: dict[cst.CSTNode, tuple[str, str | None]] = {}
        self.aliases: dict[str, str] = {}
        self.attributes: list[cst.Attribute] = []
        self.enclosing: dict[cst.Attribute, str | None] = {}
        self._class_names: list[str] = []

    def _qualify(self, name: str) -> str:
        return ".".join(p for p in (self._module_name, *self._scope, name) if p)

    def _resolved(self, expr: cst.BaseExpression) -> set[str]:
        if isinstance(expr, cst.Subscript):
            expr = expr.value
        names: Collection[QualifiedName] = self.get_metadata(
            FullyQualifiedNameProvider, expr, set()
        )
        return {q.name for q in names}

    def visit_ClassDef(self, node: cst.ClassDef) -> None:
        fqn = self._qualify(node.name.value)
        bases: set[str] = set()
        for arg in node.bases:
            bases |= self._resolved(arg.value)
        for kw in node.keywords:
            if kw.keyword is not None and kw.keyword.value == "metaclass":
                bases |= self._resolved(kw.value)
        methods: dict[str, cst.FunctionDef] = {}
        if isinstance(node.body, cst.IndentedBlock):
            for stmt in node.body.body:
                if isinstance(stmt, cst.FunctionDef):
                    # The last definition wins, as at runtime
                    methods[stmt.name.value] = stmt
                    self.declarations[stmt] = (f"{fqn}.{stmt.name.value}", fqn)
        info = ClassInfo(
            fqn=fqn,
            name=node.name.value,
            path=self.path,
            project=self.project,
            node=node,
            bases=tuple(sorted(bases)),
            methods=methods,
        )
        self.classes.append(info)
        self.declarations[node] = (fqn, None)
        self._scope.append(node.name.value)
        self._class_names.append(node.name.value)

    def leave_ClassDef(self, original_node: cst.ClassDef) -> None:
        self._scope.pop()
        self._class_names.pop()

    def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
        self._scope.extend((node.name.value, "<locals>"))

    def leave_FunctionDef(self, original_node: cst.FunctionDef) -> None:
        del self._scope[-2:]

    def visit_ImportFrom(self, node: cst.ImportFrom) -> None:
        if self._scope or isinstance(node.names, cst.ImportStar):
            return
        module = get_full_name_for_node(node.module) if node.module is not None else None
        source = _absolute_module(self._package, module, len(node.relative))
        if not source:
            return
        for alias in node.names:
            imported = get_full_name_for_node(alias.name)
            if imported is None:
                continue
            local = imported
            if alias.asname is not None and isinstance(alias.asname.name, cst.Name):
                local = alias.asname.name.value
            self.aliases[self._qualify(local)] = f"{source}.{imported}"

    def visit_Attribute(self, node: cst.Attribute) -> None:
        self.attributes.append(node)
        self.enclosing[node] = self._class_names[-1] if self._class_names else None


class ModuleModel:
    """SemanticModel for one Python file."""

    def __init__(self, path: str, project: str, source: str, naming: ModuleNameAndPackage) -> None:
        self._path = path
        self.project = project
        self.module_name = naming.name
        self._wrapper = MetadataWrapper(
            cst.parse_module(source), cache={FullyQualifiedNameProvider: naming}
        )
        collector = _Collector(naming.name, naming.package)
        collector.path = path
        collector.project = project
        self._wrapper.visit(collector)
        self._fqns = self._wrapper.resolve(FullyQualifiedNameProvider)
        self._parents = self._wrapper.resolve(ParentNodeProvider)
        self._positions = self._wrapper.resolve(PositionProvider)
        self.classes: tuple[ClassInfo, ...] = tuple(collector.classes)
        self.declarations = collector.declarations
        self.aliases = collector.aliases
        self.attributes: tuple[cst.Attribute, ...] = tuple(collector.attributes)
        self._enclosing = collector.enclosing
        self._referenced: frozenset[str] | None = None

    @property
    def path(self) -> str:
        return self._path

    @property
    def tree(self) -> cst.Module:
        return self._wrapper.module

    def parent_of(self, node: cst.CSTNode) -> cst.CSTNode | None:
        return self._parents.get(node)

    def position_of(self, node: cst.CSTNode) -> tuple[int, int]:
        code_range = self._positions[node]
        return code_range.start.line, code_range.start.column

    def enclosing_class(self, attribute: cst.Attribute) -> str | None:
        """Simple name of the nearest class lexically enclosing attribute."""
        return self._enclosing.get(attribute)

    def qualified_names(self, node: cst.CSTNode) -> Collection[QualifiedName]:
        return self._fqns.get(node, ())

    @property
    def referenced_names(self) -> frozenset[str]:
        """Every fully qualified name any node of this module resolves to."""
        if self._referenced is None:
            self._referenced = frozenset(q.name for names in self._fqns.values() for q in names)
        return self._referenced


@dataclass
class HierarchyIndex:
    """Class hierarchy of a whole snapshot."""

    classes: dict[str, ClassInfo] = field(default_factory=dict)
    subclasses: dict[str, list[str]] = field(default_factory=dict)
    aliases: dict[str, str] = field(default_factory=dict)

    def canonical(self, name: str) -> str:
        seen: set[str] = set()
        while name in self.aliases and name not in seen:
            seen.add(name)
            name = self.aliases[name]
        return name

    def descendants(self, fqn: str) -> list[str]:
        """All transitive subclasses, breadth-first, each once."""
        found: list[str] = []
        seen = {fqn}
        queue = deque([fqn])
        while queue:
            for sub in self.subclasses.get(queue.popleft(), ()):
                if sub not in seen:
                    seen.add(sub)
                    found.append(sub)
                    queue.append(sub)
        return found


class LibcstFrontend:
    """FrontendService implementation for Python codebases."""

    def __init__(self, discovery: DiscoveryConfig | None = None) -> None:
        self._discovery = discovery or DiscoveryConfig()
        self._models: dict[tuple[str, str, str], ModuleModel] = {}
        self._indexes: dict[tuple[str, str], HierarchyIndex] = {}

    # -------------------------------------------------------------------------
    # Codebase lifecycle
    # -------------------------------------------------------------------------

    def open_codebase(self, path: Path) -> Snapshot:
        snapshot = read_snapshot(path, extra_excludes=self._discovery.extra_excludes)
        log.info(
            "frontend.opened",
            root=str(snapshot.root),
            projects=[p.name for p in snapshot.projects],
            files=len(snapshot.files),
        )
        return snapshot

    def reload_codebase(self, snapshot: Snapshot) -> Snapshot:
        fresh = read_snapshot(
            snapshot.root,
            generation=snapshot.generation + 1,
            extra_excludes=self._discovery.extra_excludes,
        )
        self._evict(fresh)
        log.debug("frontend.reloaded", generation=fresh.generation, fingerprint=fresh.fingerprint)
        return fresh

    def _evict(self, fresh: Snapshot) -> None:
        root = str(fresh.root)
        live = {(root, path, source.digest) for path, source in fresh.files.items()}
        for key in [k for k in self._models if k[0] == root and k not in live]:
            del self._models[key]
        for key in [k for k in self._indexes if k[0] == root and k[1] != fresh.fingerprint]:
            del self._indexes[key]

    # -------------------------------------------------------------------------
    # Trees and models
    # -------------------------------------------------------------------------

    def get_semantic_model(self, snapshot: Snapshot, path: str) -> ModuleModel:
        source = snapshot.file(path)
        key = (str(snapshot.root), path, source.digest)
        model = self._models.get(key)
        if model is None:
            naming = module_and_package(snapshot.project(source.project), path)
            model = ModuleModel(path, source.project, source.text, naming)
            self._models[key] = model
        return model

    def get_syntax_tree(self, snapshot: Snapshot, path: str) -> cst.Module:
        return self.get_semantic_model(snapshot, path).tree

    def iter_semantic_models(self, snapshot: Snapshot, project: str | None = None) -> Iterator[ModuleModel]:
        """Models of every parseable file, optionally of one project only.

        Files libcst cannot parse are logged and skipped.
        """
        for source in snapshot.iter_files():
            if project is not None and source.project != project:
                continue
            try:
                yield self.get_semantic_model(snapshot, source.path)
            except cst.ParserSyntaxError as e:
                log.warning("frontend.parse_failed", path=source.path, error=str(e).splitlines()[0])

    def hierarchy(self, snapshot: Snapshot) -> HierarchyIndex:
        key = (str(snapshot.root), snapshot.fingerprint)
        index = self._indexes.get(key)
        if index is not None:
            return index
        index = HierarchyIndex()
        models = list(self.iter_semantic_models(snapshot))
        for model in models:
            index.aliases.update(model.aliases)
        for model in models:
            for info in model.classes:
                index.classes.setdefault(info.fqn, info)
                for base in info.bases:
                    index.subclasses.setdefault(index.canonical(base), []).append(info.fqn)
        self._indexes[key] = index
        log.debug("frontend.hierarchy_indexed", classes=len(index.classes))
        return index

    def is_interface(self, snapshot: Snapshot, model: ModuleModel, node: cst.ClassDef) -> bool:
        """Whether node declares an interface.

        A class is an interface when it derives from one of the configured
        interface bases, or when every method it declares is abstract and
        one of its bases is itself an interface (IChild(IParent)).
        """
        for info in model.classes:
            if info.node is node:
                return self._interface_class(info, self.hierarchy(snapshot), set())
        return False

    def _interface_class(self, info: ClassInfo, index: HierarchyIndex, seen: set[str]) -> bool:
        interface_bases = set(self._discovery.interface_bases)
        bases = [index.canonical(base) for base in info.bases]
        if any(base in interface_bases for base in bases):
            return True
        if info.fqn in seen or not all(self.is_abstract(m) for m in info.methods.values()):
            return False
        seen.add(info.fqn)
        return any(
            base in index.classes and self._interface_class(index.classes[base], index, seen)
            for base in bases
        )

    def is_abstract(self, method: cst.FunctionDef) -> bool:
        names = set(self._discovery.abstract_decorators)
        return any(decorator_name(d) in names for d in method.decorators)

    # -------------------------------------------------------------------------
    # Symbols
    # -------------------------------------------------------------------------

    def resolve_declared_symbol(self, model: ModuleModel, node: cst.CSTNode) -> Symbol:
        declared = model.declarations.get(node)
        if declared is None or not isinstance(node, (cst.ClassDef, cst.FunctionDef)):
            raise RefactorError.not_found("declaration", type(node).__name__, path=model.path)
        fqn, owner = declared
        return Symbol(
            fqn=fqn,
            name=node.name.value,
            kind="class" if isinstance(node, cst.ClassDef) else "method",
            path=model.path,
            project=model.project,
            owner_fqn=owner,
        )

    def _family(self, symbol: Symbol, index: HierarchyIndex) -> set[str]:
        owner = symbol.owner_fqn or symbol.fqn
        return {owner, *index.descendants(owner)}

    def find_implementations(self, symbol: Symbol, snapshot: Snapshot) -> Iterator[ImplementationSite]:
        """Concrete definitions of symbol's method on every transitive subclass."""
        if symbol.owner_fqn is None:
            return
        index = self.hierarchy(snapshot)
        found: list[ImplementationSite] = []
        for fqn in index.descendants(symbol.owner_fqn):
            info = index.classes[fqn]
            method = info.methods.get(symbol.name)
            if method is None or self.is_abstract(method):
                continue
            found.append(
                ImplementationSite(
                    path=info.path,
                    project=info.project,
                    type_name=info.name,
                    type_fqn=info.fqn,
                    symbol=Symbol(
                        fqn=f"{info.fqn}.{symbol.name}",
                        name=symbol.name,
                        kind="method",
                        path=info.path,
                        project=info.project,
                        owner_fqn=info.fqn,
                    ),
                    method=method,
                )
            )
        found.sort(key=lambda s: (s.path, s.type_fqn))
        yield from found

    def find_references(self, symbol: Symbol, snapshot: Snapshot) -> Iterator[CallSite]:
        """Attribute accesses of symbol's name where its class family is visible."""
        index = self.hierarchy(snapshot)
        family = self._family(symbol, index)
        for model in self.iter_semantic_models(snapshot):
            if not self._sees(model, family, index):
                continue
            for attribute in model.attributes:
                if attribute.attr.value != symbol.name:
                    continue
                if self._foreign_receiver(model, attribute.value, family, index):
                    continue
                line, column = model.position_of(attribute.attr)
                yield CallSite(
                    path=model.path,
                    project=model.project,
                    line=line,
                    column=column,
                    name=symbol.name,
                    enclosing_type=model.enclosing_class(attribute),
                    node=attribute.attr,
                )

    def _sees(self, model: ModuleModel, family: set[str], index: HierarchyIndex) -> bool:
        if any(info.fqn in family for info in model.classes):
            return True
        return any(index.canonical(name) in family for name in model.referenced_names)

    def _foreign_receiver(
        self,
        model: ModuleModel,
        receiver: cst.BaseExpression,
        family: set[str],
        index: HierarchyIndex,
    ) -> bool:
        names = model.qualified_names(receiver)
        if not names or any(q.source is not QualifiedNameSource.IMPORT for q in names):
            return False
        return not any(index.canonical(q.name) in family for q in names)

    # -------------------------------------------------------------------------
    # Editing and storage
    # -------------------------------------------------------------------------

    def open_edit_session(self, snapshot: Snapshot, path: str) -> TreeEditSession:
        return TreeEditSession(path, self.get_syntax_tree(snapshot, path))

    def apply_snapshot_update(self, snapshot: Snapshot, updates: Mapping[str, str]) -> tuple[str, ...]:
        return write_atomically(snapshot, updates)


def parse_statements(sources: Iterable[str | cst.BaseStatement]) -> Sequence[cst.BaseStatement]:
    """Parse statement sources; nodes pass through unchanged.

    Raises:
        RefactorError: a source string is not a single valid statement.
    """
    statements: list[cst.BaseStatement] = []
    for source in sources:
        if isinstance(source, cst.BaseStatement):
            statements.append(source)
            continue
        try:
            statements.append(cst.parse_statement(source))
        except cst.ParserSyntaxError as e:
            raise RefactorError.invalid_statement(source, str(e).splitlines()[0]) from e
    return statements
