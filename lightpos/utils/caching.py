import hashlib
from typing import Any, Iterable


def make_signature(*parts: Iterable[Any]) -> str:
    """Generate a stable signature from multiple parts."""
    m = hashlib.sha256()
    for p in parts:
        m.update(str(p).encode("utf-8"))
        m.update(b"|")
    return m.hexdigest()
