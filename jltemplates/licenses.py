"""Bundled license texts.

License bodies live as plain text files in the ``license_texts/`` directory next to
this module, one file per identifier.  The copyright line is not part of the
body; the LICENSE generator prepends it.
"""

from __future__ import annotations

from pathlib import Path

from .errors import LicenseError

LICENSE_DIR = Path(__file__).parent / "license_texts"

LICENSES: dict[str, str] = {
    "MIT": 'MIT "Expat" License',
    "BSD2": 'Simplified "2-clause" BSD License',
    "BSD3": 'Modified "3-clause" BSD License',
    "ISC": "Internet Systems Consortium License",
}


def available_licenses() -> dict[str, str]:
    """Return ``{identifier: full name}`` for every bundled license file."""
    return {
        ident: name
        for ident, name in LICENSES.items()
        if (LICENSE_DIR / ident).is_file()
    }


def license_exists(identifier: str) -> bool:
    return identifier in available_licenses()


def read_license(identifier: str) -> str:
    """Return the body text for *identifier* without its trailing newline.

    Raises:
        LicenseError: If no bundled license matches the identifier.
    """
    if not license_exists(identifier):
        known = ", ".join(sorted(available_licenses()))
        raise LicenseError(f"License '{identifier}' is not available (known: {known})")
    return (LICENSE_DIR / identifier).read_text(encoding="utf-8").rstrip("\n")
