"""Interactive confirmation before installing a missing runtime.

The gate is the only place that talks to the user. The interaction is an
injected Prompter (question -> answer) so tests can script responses.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from rchidrun.core.errors import InstallationAbortedError, InvalidUrlError
from rchidrun.core.logging import RunnerLogger
from rchidrun.core.models import RemoteUrl
from rchidrun.resolver import resolve

if TYPE_CHECKING:
    from rchidrun.cache import RuntimeCache
    from rchidrun.installer import Installer

Prompter = Callable[[str], str]

AFFIRMATIVE_ANSWERS = frozenset({"y", "yes"})


def console_prompt(question: str) -> str:
    """Blocking prompt on the controlling terminal; EOF reads as an empty answer."""
    try:
        return input(question)
    except EOFError:
        return ""


def parse_runtime_url(answer: str) -> RemoteUrl:
    """Turn a user-supplied answer into a RemoteUrl.

    Raises:
        InvalidUrlError: If empty, not http(s), or missing a host
    """
    url = answer.strip()
    if not url:
        raise InvalidUrlError("No URL provided")

    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InvalidUrlError(f"Invalid URL '{url}': only http/https URLs are allowed")
    return RemoteUrl(url=url)


class ConfirmationGate:
    """Makes a runtime available, asking the user before any install.

    Attributes:
        cache: RuntimeCache checked first (fast path)
        installer: Installer used after the user agrees
        prompt: Prompter for the single blocking question
        echo: Output for informational lines (defaults to print)
        logger: RunnerLogger for cache.hit / cache.miss events
    """

    def __init__(
        self,
        cache: RuntimeCache,
        installer: Installer,
        prompt: Prompter = console_prompt,
        echo: Callable[[str], None] = print,
        logger: RunnerLogger | None = None,
    ) -> None:
        self.cache = cache
        self.installer = installer
        self.prompt = prompt
        self.echo = echo
        self.logger = logger if logger is not None else RunnerLogger()

    def ensure_available(self, language: str) -> Path:
        """Return the installed module path for a language, installing if needed.

        A cached runtime returns immediately with no prompt and no network.

        Raises:
            InstallationAbortedError: User declined the registry install
            InvalidUrlError: User gave an empty or malformed URL
            RunnerError: Any installer failure, propagated unchanged
        """
        cached = self.cache.lookup(language)
        if cached is not None:
            self.logger.log_cache_hit(language, cached)
            return cached

        self.logger.log_cache_miss(language)

        reference = resolve(language)
        if reference is not None:
            answer = self.prompt(
                f"No runtime found for '{language}'.\n"
                f"Install '{reference.package}' via Wasmer? (y/n): "
            )
            if answer.strip().lower() not in AFFIRMATIVE_ANSWERS:
                raise InstallationAbortedError("Installation aborted")
            entry = self.installer.install(language, reference)
            self.echo(f"Installed '{language}' via Wasmer")
        else:
            answer = self.prompt(
                f"No runtime found for '{language}'.\n"
                "Language not predefined. Provide a URL to the WASM runtime: "
            )
            source = parse_runtime_url(answer)
            entry = self.installer.install(language, source)
            self.echo(f"Installed '{language}' from URL")

        return entry.path
