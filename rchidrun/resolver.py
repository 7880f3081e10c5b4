"""Language identifier resolution.

Maps a language identifier to its predefined registry package. Adding a
predefined language is an edit to LANGUAGE_PACKAGES.
"""

from __future__ import annotations

from rchidrun.core.models import RegistryReference

LANGUAGE_PACKAGES: dict[str, str] = {
    "python": "wasmer/python",
    "javascript": "wasmer/quickjs",
    "ruby": "wasmer/ruby",
}


def resolve(language: str) -> RegistryReference | None:
    """Return the registry reference for a predefined language.

    Identifiers are matched exactly (case-sensitive). None means the
    language is custom and a RemoteUrl has to be obtained from the user.
    """
    package = LANGUAGE_PACKAGES.get(language)
    if package is None:
        return None
    return RegistryReference(package=package)


def is_supported(language: str) -> bool:
    return language in LANGUAGE_PACKAGES


def supported_languages() -> dict[str, str]:
    """Copy of the predefined language -> package table."""
    return dict(LANGUAGE_PACKAGES)
