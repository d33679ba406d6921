"""Field access for lead records of any shape."""

from collections.abc import Mapping


def read_field(record, name: str, default=None):
    """Read ``name`` from a mapping or an object; ``default`` when absent."""
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)
