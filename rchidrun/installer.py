"""Runtime installation: acquire, validate, then commit to the cache.

Module bytes come either from a PackageSource (registry references) or from
an HTTP download (remote URLs). Bytes are validated before any cache write,
so an invalid module is never visible to a later lookup.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import requests
from wasmtime import Engine

from rchidrun.core.errors import (
    DownloadError,
    InvalidModuleError,
    MissingEntryPointError,
)
from rchidrun.core.logging import RunnerLogger
from rchidrun.core.models import RegistryReference, RemoteUrl
from rchidrun.validation import validate_module

if TYPE_CHECKING:
    from rchidrun.cache import RuntimeCache
    from rchidrun.core.models import CacheEntry, RunnerConfig, RuntimeSource
    from rchidrun.sources import PackageSource


def download_module(url: str, timeout: float) -> bytes:
    """Download module bytes from an http(s) URL.

    Raises:
        DownloadError: On transport failure, non-2xx status, or empty body
    """
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise DownloadError(f"Failed to download {url}: {e}") from e

    if not response.ok:
        raise DownloadError(f"Failed to download {url}: HTTP {response.status_code}")

    data = response.content
    if not data:
        raise DownloadError(f"Failed to download {url}: empty response body")
    return data


class Installer:
    """Acquires runtime modules and commits validated ones to the cache.

    Attributes:
        config: RunnerConfig with download timeout and entry point name
        cache: RuntimeCache receiving validated modules
        package_source: Registry acquisition backend
        engine: Wasmtime engine used for validation
        logger: RunnerLogger for install.* events
    """

    def __init__(
        self,
        config: RunnerConfig,
        cache: RuntimeCache,
        package_source: PackageSource,
        engine: Engine | None = None,
        logger: RunnerLogger | None = None,
    ) -> None:
        self.config = config
        self.cache = cache
        self.package_source = package_source
        self.engine = engine if engine is not None else Engine()
        self.logger = logger if logger is not None else RunnerLogger()

    def acquire(self, source: RuntimeSource) -> bytes:
        """Fetch raw module bytes for a source without validating them."""
        if isinstance(source, RegistryReference):
            return self.package_source.fetch(source.package)
        if isinstance(source, RemoteUrl):
            return download_module(source.url, self.config.download_timeout_seconds)
        raise TypeError(f"Unsupported runtime source: {source!r}")

    def install(self, language: str, source: RuntimeSource) -> CacheEntry:
        """Install a runtime for a language from the given source.

        Workflow:
        1. Acquire bytes from the registry backend or the URL
        2. Validate binary format and the entry point export
        3. Atomically commit to the cache

        Raises:
            RegistryUnavailableError, PackageFetchError: Registry acquisition failed
            DownloadError: URL download failed
            InvalidModuleError, MissingEntryPointError: Validation failed (nothing cached)
            WriteError: Cache commit failed
        """
        target = source.package if isinstance(source, RegistryReference) else source.url
        self.logger.log_install_start(language, source.kind, target)

        data = self.acquire(source)

        try:
            validate_module(self.engine, data, self.config.entry_point)
        except InvalidModuleError as e:
            self.logger.log_install_rejected(language, "invalid_module", str(e))
            raise
        except MissingEntryPointError as e:
            self.logger.log_install_rejected(language, "missing_entry_point", str(e))
            raise

        entry = self.cache.commit(language, data)
        self.logger.log_install_complete(language, source.kind, len(data))
        return entry
