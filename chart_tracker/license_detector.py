"""Best-effort SPDX license identification from license file text."""

import re
from typing import Protocol


class LicenseDetector(Protocol):
    def detect(self, data: bytes) -> str:
        """Return the SPDX identifier of the license text, or ""."""


# Ordered so that more specific licenses are checked before the ones whose
# text they contain (LGPL/AGPL mention the GPL, BSD-3 extends BSD-2).
LICENSE_PATTERNS: list[tuple[str, list[str]]] = [
    ("AGPL-3.0", [r"gnu affero general public license", r"version 3"]),
    ("LGPL-3.0", [r"gnu lesser general public license", r"version 3"]),
    ("LGPL-2.1", [r"gnu lesser general public license", r"version 2\.1"]),
    ("GPL-3.0", [r"gnu general public license", r"version 3"]),
    ("GPL-2.0", [r"gnu general public license", r"version 2"]),
    ("Apache-2.0", [r"apache license", r"version 2\.0"]),
    ("MPL-2.0", [r"mozilla public license", r"2\.0"]),
    (
        "BSD-3-Clause",
        [
            r"redistribution and use in source and binary forms",
            r"neither the name of",
        ],
    ),
    ("BSD-2-Clause", [r"redistribution and use in source and binary forms"]),
    ("ISC", [r"permission to use, copy, modify, and(/or)? distribute this software"]),
    ("MIT", [r"permission is hereby granted, free of charge"]),
    ("Unlicense", [r"this is free and unencumbered software released into the public domain"]),
]


def detect(data: bytes) -> str:
    """Detect the license of a LICENSE file.

    Args:
        data: Raw content of the license file

    Returns:
        SPDX identifier, or an empty string when no known license matches
    """
    text = " ".join(data.decode("utf-8", errors="replace").lower().split())
    if not text:
        return ""

    for spdx_id, patterns in LICENSE_PATTERNS:
        if all(re.search(pattern, text) for pattern in patterns):
            return spdx_id
    return ""


class TextLicenseDetector:
    """LicenseDetector backed by :func:`detect`."""

    def detect(self, data: bytes) -> str:
        return detect(data)
