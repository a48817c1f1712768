"""Identifier sanitizer with per-run generated fallback ids."""

import re
from typing import Optional

_UNSAFE = re.compile(r"[^A-Za-z0-9_]")


def id_safe(candidate: Optional[str]) -> str:
    """Replace every character outside [A-Za-z0-9_] with an underscore."""
    return _UNSAFE.sub("_", str(candidate or "").strip())


class IdSession:
    """Id generation scoped to one normalization run.

    Create one per pipeline invocation. The counter starts at zero for each
    session, so two runs over the same input generate the same ids.
    """

    def __init__(self, prefix: str = "n"):
        self.prefix = prefix
        self._auto = 0

    def next_id(self) -> str:
        generated = f"{self.prefix}{self._auto}"
        self._auto += 1
        return generated

    def sanitize(self, candidate: Optional[str] = None) -> str:
        """Return a safe id for ``candidate``, or a generated one.

        A candidate that sanitizes to nothing but underscores carries no
        information and is treated as missing.
        """
        safe = id_safe(candidate)
        if not safe.strip("_"):
            return self.next_id()
        return safe

    def claim(self, candidate: Optional[str], used: set[str]) -> str:
        """Sanitize ``candidate`` and make it unique within ``used``.

        Collisions get ``_2``, ``_3``... appended. The returned id is added
        to ``used``.
        """
        base = self.sanitize(candidate)
        unique = base
        n = 2
        while unique in used:
            unique = f"{base}_{n}"
            n += 1
        used.add(unique)
        return unique
