"""
Value Store

Path-addressable bag of the user's answers for one editing session.

Path syntax:
    purpose                 -> values['purpose']
    fromEntity.legalName    -> values['fromEntity']['legalName']
    this.name               -> values['this']['name'] (inside #each)
    $template               -> template metadata mapping, never the user's values
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional

from .exceptions import MissingValueError, TypeMismatchError

logger = logging.getLogger(__name__)

TEMPLATE_KEY = '$template'

_MISSING = object()


class ValueStore:
    """
    Mutable mapping from top-level keys to JSON-shaped values.

    Values are str, int, float, bool, list, dict or None. Writes happen
    at top-level key granularity; nested changes are made by replacing
    the whole top-level value.
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None,
                 template_meta: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})
        self._template_meta: Dict[str, Any] = dict(template_meta or {})

    @property
    def template_meta(self) -> Dict[str, Any]:
        return self._template_meta

    def get(self, path: str) -> Any:
        """
        Resolve a dotted path.

        Raises:
            MissingValueError: a segment is not present
            TypeMismatchError: a segment traverses through a non-mapping
        """
        parts = (path or '').strip().split('.')
        if not parts or not parts[0]:
            raise MissingValueError("Empty path", path=path)

        # Remaining segments after $template are ignored
        if parts[0] == TEMPLATE_KEY:
            return self._template_meta

        current: Any = self._values

        for part in parts:
            if not isinstance(current, Mapping):
                raise TypeMismatchError(
                    f"Cannot read '{part}' from non-mapping value in '{path}'",
                    path=path,
                )
            if part not in current:
                raise MissingValueError(f"'{path}' is not set", path=path)
            current = current[part]

        return current

    def lookup(self, path: str, default: Any = None) -> Any:
        """Like get(), but returns `default` instead of raising."""
        try:
            return self.get(path)
        except (MissingValueError, TypeMismatchError) as e:
            logger.debug(f"Lookup failed: {e}")
            return default

    def has(self, path: str) -> bool:
        return self.lookup(path, _MISSING) is not _MISSING

    def set(self, key: str, value: Any) -> None:
        """Write a whole top-level key. No validation at write time."""
        self._values[key] = value

    def copy(self) -> 'ValueStore':
        """Shallow copy; top-level writes on the copy do not leak back."""
        return ValueStore(self._values, self._template_meta)

    def child(self, **bindings: Any) -> 'ValueStore':
        """Copy with extra top-level bindings, e.g. child(this=item)."""
        scope = self.copy()
        for key, value in bindings.items():
            scope.set(key, value)
        return scope

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __repr__(self) -> str:
        return f"ValueStore({self._values!r})"
