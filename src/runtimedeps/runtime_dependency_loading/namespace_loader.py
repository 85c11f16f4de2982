"""
Child-first module finder over a list of local archives.
"""

import importlib
import importlib.abc
import importlib.machinery
import os
import sys
import threading
from typing import List, Optional, Sequence, Tuple


def _is_namespace_portion(spec: importlib.machinery.ModuleSpec) -> bool:
    return spec.submodule_search_locations is not None and spec.origin in (None, "namespace")


class NamespaceLoader(importlib.abc.MetaPathFinder):
    """
    A meta path finder holding an ordered, append-only list of archive paths.

    Once installed it sits in front of the interpreter's own finders, so modules
    found in its archives take precedence over modules of the same name that the
    host could otherwise import. Archives are searched in the order they were
    added. Modules that were imported before an archive was added stay as they are.

    A namespace package portion found in the archives is only served when the host
    cannot find the package itself; otherwise the host's package is used and the
    portion's submodules are still found through this finder.
    """

    def __init__(self, name: str = "runtimedeps"):
        self.name = name
        self._paths: List[str] = []
        self._lock = threading.Lock()

    @property
    def paths(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._paths)

    def add_path(self, path: str) -> bool:
        """
        Make the archive at ``path`` importable.

        Returns:
            False if ``path`` was already registered, True otherwise
        """
        path = os.fspath(path)
        with self._lock:
            if path in self._paths:
                return False
            self._paths.append(path)
        return True

    def install(self) -> None:
        """Put this finder at the front of ``sys.meta_path``."""
        if self not in sys.meta_path:
            sys.meta_path.insert(0, self)

    def uninstall(self) -> None:
        if self in sys.meta_path:
            sys.meta_path.remove(self)

    def import_module(self, name: str):
        self.install()
        return importlib.import_module(name)

    def _search_locations(self, fullname: str) -> List[str]:
        parents = fullname.split(".")[:-1]
        return [os.path.join(entry, *parents) for entry in self.paths]

    def find_spec(
        self,
        fullname: str,
        path: Optional[Sequence[str]] = None,
        target=None,
    ) -> Optional[importlib.machinery.ModuleSpec]:
        if not self._paths:
            return None

        spec = importlib.machinery.PathFinder.find_spec(fullname, self._search_locations(fullname))
        if spec is None:
            return None

        if _is_namespace_portion(spec):
            if importlib.machinery.PathFinder.find_spec(fullname, path) is not None:
                return None
        return spec

    def invalidate_caches(self) -> None:
        # zipimporters cache the archive's directory; drop them so replaced archives are re-read
        entries = self.paths
        for key in list(sys.path_importer_cache):
            if any(key == entry or key.startswith(entry + os.sep) for entry in entries):
                sys.path_importer_cache.pop(key, None)

    def __repr__(self) -> str:
        return f"NamespaceLoader(name={self.name}, paths={len(self._paths)})"
