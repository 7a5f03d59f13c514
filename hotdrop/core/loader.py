"""Active-deployment loader — executes the current deployment's entry module.

Every call to ``load_active()`` re-reads the registry pointer and executes
the entry module from scratch under a fresh module name.  Nothing from an
earlier load is reused, so a deployment published while the process is
running takes effect on the very next inbound event.

The entry module is loaded as a package rooted at its deployment directory,
which lets it import sibling files of the same deployment relatively
(``from . import helpers``).  Those imports must happen at module top level:
the temporary ``sys.modules`` entries are dropped once the load completes.
Byte-code for deployment modules is never written, so the materialized
tree stays exactly as the builder left it.
"""

from __future__ import annotations

import importlib.machinery
import importlib.util
import itertools
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Protocol, runtime_checkable

from hotdrop.core.errors import ModuleLoadFailure, NoDeploymentAvailable
from hotdrop.core.registry import DeploymentRegistry

logger = logging.getLogger(__name__)

ENTRY_POINTS: tuple[str, ...] = (
    "handle_interaction",
    "handle_message",
    "handle_http_request",
)

_MODULE_PREFIX = "_hotdrop_deployment"


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class DeployedLogic(Protocol):
    """What a deployment's entry module must provide.

    Each entry point may be a plain function or a coroutine function.  The
    return value is handed back unchanged to whoever delivered the event.
    """

    def handle_interaction(self, context: Any, interaction: Any) -> Any:
        """Handle an inbound chat interaction (slash command, button, ...)."""
        ...

    def handle_message(self, context: Any, message: Any) -> Any:
        """Handle an inbound chat message."""
        ...

    def handle_http_request(self, context: Any, request: Any, response: Any) -> Any:
        """Handle an inbound HTTP request routed to the deployed logic."""
        ...


class LoadedDeployment:
    """Handle to one freshly executed copy of a deployment's entry module."""

    def __init__(self, digest: str, path: Path, module: ModuleType) -> None:
        self.digest = digest
        self.path = path
        self.module = module

    def entry_point(self, name: str) -> Any:
        if name not in ENTRY_POINTS:
            raise KeyError(name)
        return getattr(self.module, name)

    @property
    def handle_interaction(self) -> Any:
        return self.module.handle_interaction

    @property
    def handle_message(self) -> Any:
        return self.module.handle_message

    @property
    def handle_http_request(self) -> Any:
        return self.module.handle_http_request

    def __repr__(self) -> str:
        return f"LoadedDeployment(digest={self.digest[:12]}..., path={self.path})"


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class ActiveDeploymentLoader:
    """Resolves the registry pointer to an executable entry module.

    Parameters
    ----------
    registry:
        Source of the active deployment digest.
    deployments_dir:
        Parent directory of all materialized deployments.
    entry_filename:
        Name of the entry module inside each deployment.
    """

    def __init__(
        self,
        registry: DeploymentRegistry,
        deployments_dir: Path,
        entry_filename: str = "index.py",
    ) -> None:
        self._registry = registry
        self._deployments_dir = Path(deployments_dir)
        self._entry_filename = entry_filename
        self._counter = itertools.count(1)

    def resolve_entry(self, deployment_digest: str) -> Path:
        """Canonical path of a deployment's entry module.

        Symlinks are resolved, so moving the storage root behind a symlink
        does not change which file a digest refers to.

        Raises
        ------
        ModuleLoadFailure
            If the entry module does not exist.
        """
        candidate = self._deployments_dir / deployment_digest / self._entry_filename
        try:
            path = candidate.resolve(strict=True)
        except OSError as exc:
            raise ModuleLoadFailure(
                f"Entry module not found for deployment {deployment_digest}: "
                f"{candidate}",
                deployment=deployment_digest,
            ) from exc
        if not path.is_file():
            raise ModuleLoadFailure(
                f"Entry module is not a file: {path}",
                deployment=deployment_digest,
            )
        return path

    def load_active(self) -> LoadedDeployment:
        """Execute and return the active deployment's entry module.

        Raises
        ------
        NoDeploymentAvailable
            If nothing was ever published.
        ModuleLoadFailure
            If the entry module is missing, raises while executing, or lacks
            one of the entry points.
        """
        digest = self._registry.current()
        if digest is None:
            raise NoDeploymentAvailable()

        path = self.resolve_entry(digest)
        module = self._execute(digest, path)

        if isinstance(module, DeployedLogic):
            missing = [name for name in ENTRY_POINTS if not callable(getattr(module, name))]
        else:
            missing = [name for name in ENTRY_POINTS if not hasattr(module, name)]
        if missing:
            raise ModuleLoadFailure(
                f"Deployment {digest} does not define callable: {', '.join(missing)}",
                deployment=digest,
                missing=missing,
            )
        return LoadedDeployment(digest=digest, path=path, module=module)

    # -- Internal helpers ---------------------------------------------------

    def _execute(self, digest: str, path: Path) -> ModuleType:
        name = f"{_MODULE_PREFIX}_{digest[:16]}_{next(self._counter)}"
        _install_finders(path.parent)
        spec = importlib.util.spec_from_file_location(
            name,
            path,
            loader=_ReadOnlySourceLoader(name, str(path)),
            submodule_search_locations=[str(path.parent)],
        )
        if spec is None or spec.loader is None:
            raise ModuleLoadFailure(
                f"Cannot build an import spec for {path}", deployment=digest
            )

        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            logger.error(
                "Deployment %s failed to load: %s",
                digest,
                exc,
                extra={"deployment": digest, "path": str(path)},
            )
            raise ModuleLoadFailure(
                f"Deployment {digest} failed to load: {exc}", deployment=digest
            ) from exc
        finally:
            _forget_modules(name)

        logger.debug("Loaded deployment %s from %s.", digest, path)
        return module


class _ReadOnlySourceLoader(importlib.machinery.SourceFileLoader):
    """Source loader that never writes byte-code into a deployment."""

    def set_data(self, path: str, data: bytes, *, _mode: int = 0o666) -> None:
        return None


def _install_finders(root: Path) -> None:
    """Route imports from *root* and its subdirectories through the read-only loader."""
    loader_details = (
        (importlib.machinery.ExtensionFileLoader, importlib.machinery.EXTENSION_SUFFIXES),
        (_ReadOnlySourceLoader, importlib.machinery.SOURCE_SUFFIXES),
    )
    directories = [root, *(p for p in root.rglob("*") if p.is_dir() and p.name != "__pycache__")]
    for directory in directories:
        sys.path_importer_cache[str(directory)] = importlib.machinery.FileFinder(
            str(directory), *loader_details
        )


def _forget_modules(name: str) -> None:
    prefix = f"{name}."
    for key in [k for k in list(sys.modules) if k == name or k.startswith(prefix)]:
        sys.modules.pop(key, None)
