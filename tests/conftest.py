"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and builds multi-project fixture codebases in tmp_path.
"""

import os
import sys
from collections.abc import Callable
from pathlib import Path
from textwrap import dedent

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local codeweave package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of codeweave modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("codeweave"):
        del sys.modules[module_name]


# Four projects: the interface lives in "services" (src layout, re-exported
# from the package __init__), implementations in "app" and "plugins", and
# callers in "client".
CODEBASE: dict[str, str] = {
    "services/src/services/__init__.py": """
        from .contracts import BaseService, IAppService

        __all__ = ["BaseService", "IAppService"]
    """,
    "services/src/services/contracts.py": """
        from abc import ABC, abstractmethod

        from typing_extensions import deprecated


        class IAppService(ABC):
            \"\"\"Application service contract.\"\"\"

            @abstractmethod
            def start(self) -> None: ...

            @abstractmethod
            def handle(self, request): ...

            @deprecated("handle_old is obsolete. Use handle")
            @abstractmethod
            def handle_old(self, request): ...


        class BaseService(IAppService):
            @abstractmethod
            def start(self) -> None: ...
    """,
    "app/app/impl.py": """
        from services import BaseService


        class AppService(BaseService):
            def start(self) -> None:
                \"\"\"Start the service.\"\"\"
                self.ready = True

            def handle(self, request):
                return request

            def handle_old(self, request):
                return request


        class FastService(AppService):
            def start(self) -> None: self.ready = True
    """,
    "plugins/plugins/extra.py": """
        from services.contracts import BaseService


        class PluginService(BaseService):
            def start(self) -> None:
                pass

            def handle(self, request):
                return None

            def handle_old(self, request):
                return None
    """,
    "client/client/callers.py": """
        from registry import legacy_registry
        from services import IAppService


        class NormalCaller:
            def run(self, service: IAppService):
                service.start()
                return service.handle_old("x")


        class LegacyCaller:
            def run(self, service: IAppService):
                service.start()
                service.handle("y")
                legacy_registry.handle_old()
                return service.handle_old("z")
    """,
}


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Write dedented files under root, creating parent directories."""
    for rel_path, text in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(text).lstrip("\n"), encoding="utf-8")
    return root


@pytest.fixture
def make_codebase(tmp_path: Path) -> Callable[..., Path]:
    """Factory: the standard codebase, with files added, replaced or removed.

    A value of None removes the file from the standard set.
    """

    def factory(files: dict[str, str | None] | None = None, *, base: bool = True) -> Path:
        merged: dict[str, str | None] = dict(CODEBASE) if base else {}
        merged.update(files or {})
        root = tmp_path / "repo"
        root.mkdir(exist_ok=True)
        return write_tree(root, {p: t for p, t in merged.items() if t is not None})

    return factory


@pytest.fixture
def codebase(make_codebase: Callable[..., Path]) -> Path:
    """The standard four-project codebase."""
    return make_codebase()


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the user's global config and CODEWEAVE__ env vars out of tests."""
    import codeweave.config.loader as loader

    monkeypatch.setattr(loader, "GLOBAL_CONFIG_PATH", tmp_path / "global-config.yaml")
    for key in list(os.environ):
        if key.upper().startswith("CODEWEAVE__"):
            monkeypatch.delenv(key)
