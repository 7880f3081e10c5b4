"""Package acquisition backends for registry-published runtimes.

Provides the PackageSource contract and WasmerPackageSource, which shells out
to the Wasmer CLI to install a package into a scratch directory and returns
the module bytes it produced.
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from rchidrun.core.errors import PackageFetchError, RegistryUnavailableError


class PackageSource(ABC):
    """Abstract acquisition capability for registry references."""

    @abstractmethod
    def fetch(self, package: str) -> bytes:
        """Return the module bytes for a registry package.

        Args:
            package: Registry package name (e.g. "wasmer/python")

        Raises:
            RegistryUnavailableError: If the capability cannot be invoked
            PackageFetchError: If it ran but produced no module
        """
        pass


class WasmerPackageSource(PackageSource):
    """Fetch runtimes by running the Wasmer CLI.

    The command template is taken from RunnerConfig.registry_command; the
    "{package}" and "{dest}" placeholders are substituted per call.

    Attributes:
        command: Command template, first element is the executable
        module_filename: Preferred module file name inside the install directory
    """

    def __init__(self, command: list[str], module_filename: str = "runtime.wasm") -> None:
        self.command = list(command)
        self.module_filename = module_filename

    def fetch(self, package: str) -> bytes:
        executable = shutil.which(self.command[0])
        if executable is None:
            raise RegistryUnavailableError(
                f"{self.command[0]} not found. Please install Wasmer (https://wasmer.io/)."
            )

        with tempfile.TemporaryDirectory(prefix="rchidrun-registry-") as dest:
            args = [executable] + [
                part.format(package=package, dest=dest) for part in self.command[1:]
            ]
            try:
                result = subprocess.run(args, capture_output=True, text=True, check=False)
            except OSError as e:
                raise RegistryUnavailableError(f"Failed to invoke {self.command[0]}: {e}") from e

            if result.returncode != 0:
                detail = result.stderr.strip() or result.stdout.strip()
                raise PackageFetchError(
                    f"Installation of '{package}' failed (exit {result.returncode}): {detail}"
                )

            module_path = self._find_module(Path(dest))
            if module_path is None:
                raise PackageFetchError(f"Package '{package}' did not provide a .wasm module")

            try:
                return module_path.read_bytes()
            except OSError as e:
                raise PackageFetchError(f"Failed to read module for '{package}': {e}") from e

    def _find_module(self, dest: Path) -> Path | None:
        """Prefer <dest>/<module_filename>, else the first *.wasm found."""
        preferred = dest / self.module_filename
        if preferred.is_file():
            return preferred
        candidates = sorted(p for p in dest.rglob("*.wasm") if p.is_file())
        return candidates[0] if candidates else None
