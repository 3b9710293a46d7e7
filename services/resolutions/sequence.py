"""
Resolution Sequence Service

Persisted, keyed monotonic counter that mints resolution ids:

    SHOLD-2025-01-RES-DIST
    ^     ^    ^      ^
    |     |    |      typeTag of the template
    |     |    per-(entity, year) sequence, zero-padded to two digits
    |     calendar year of the resolution date
    entity id

The register file is JSON:

    {"counters": [{"entityId": "SHOLD", "year": 2025, "value": 3}]}

Not internally synchronised; callers serving several threads must
serialise generate_resolution_id() themselves.
"""

import json
import logging
import os
import tempfile
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple, Union

from .exceptions import PersistenceCorruptError, PersistenceError

logger = logging.getLogger(__name__)

RegisterKey = Tuple[str, int]
PathLike = Union[str, Path]


class ResolutionRegister:
    """
    Mapping of (entity_id, year) -> last issued sequence number.

    Counters only ever increase, except when an unsaved bump is restored.
    """

    def __init__(self, counters: Optional[Dict[RegisterKey, int]] = None):
        self.counters: Dict[RegisterKey, int] = dict(counters or {})

    def get(self, entity_id: str, year: int) -> int:
        return self.counters.get((entity_id, year), 0)

    def bump(self, entity_id: str, year: int) -> int:
        key = (entity_id, year)
        value = self.counters.get(key, 0) + 1
        self.counters[key] = value
        return value

    def restore(self, entity_id: str, year: int, value: int) -> None:
        """Put back a counter whose bump was never persisted."""
        key = (entity_id, year)
        if value:
            self.counters[key] = value
        else:
            self.counters.pop(key, None)

    def __iter__(self) -> Iterator[RegisterKey]:
        return iter(self.counters)

    def __len__(self) -> int:
        return len(self.counters)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ResolutionRegister):
            return NotImplemented
        return self.counters == other.counters

    def __repr__(self) -> str:
        return f"ResolutionRegister({self.counters!r})"

    def to_dict(self) -> Dict:
        return {
            'counters': [
                {'entityId': entity_id, 'year': year, 'value': value}
                for (entity_id, year), value in sorted(self.counters.items())
            ]
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'ResolutionRegister':
        """
        Build from the JSON shape.

        Raises:
            PersistenceCorruptError: if the shape is wrong
        """
        if not isinstance(data, dict) or not isinstance(data.get('counters'), list):
            raise PersistenceCorruptError("Register file has no 'counters' list")

        counters = {}
        for entry in data['counters']:
            try:
                key = (str(entry['entityId']), int(entry['year']))
                value = int(entry['value'])
            except (KeyError, TypeError, ValueError) as e:
                raise PersistenceCorruptError(f"Bad register entry {entry!r}: {e}")
            if value < 0:
                raise PersistenceCorruptError(f"Negative counter for {key}")
            counters[key] = max(value, counters.get(key, 0))
        return cls(counters)


class ResolutionIdService:
    """
    Mints unique resolution ids from a ResolutionRegister.

    Usage:
        service = ResolutionIdService.from_file('instance/resolution_register.json')
        rid = service.generate_resolution_id('SHOLD', date(2025, 3, 1), 'DIST')
        service.save()
    """

    def __init__(self, register: Optional[ResolutionRegister] = None,
                 path: Optional[PathLike] = None):
        self.register = register if register is not None else ResolutionRegister()
        self.path = Path(path) if path else None

    @classmethod
    def from_file(cls, path: PathLike) -> 'ResolutionIdService':
        """Construct hydrated from `path`; always succeeds."""
        return cls(register=cls.load(path), path=path)

    def next_sequence(self, entity_id: str, year: int) -> int:
        """Increment and return the counter for (entity_id, year). First call returns 1."""
        return self.register.bump(entity_id, year)

    def generate_resolution_id(self, entity_id: str, on_date: Union[date, datetime],
                               type_tag: str) -> str:
        """
        Format the next id for the entity and the calendar year of `on_date`.

        Example:
            ('SHOLD', date(2025, 3, 1), 'DIST') -> 'SHOLD-2025-01-RES-DIST'
        """
        year = on_date.year
        seq = self.next_sequence(entity_id, year)
        resolution_id = f"{entity_id}-{year}-{seq:02d}-RES-{type_tag}"
        logger.info(f"Issued resolution id {resolution_id}")
        return resolution_id

    def save(self, path: Optional[PathLike] = None) -> None:
        """
        Write the whole register atomically.

        Raises:
            PersistenceError: on any write failure
        """
        target = Path(path) if path else self.path
        if target is None:
            raise PersistenceError("No register path configured")

        payload = json.dumps(self.register.to_dict(), indent=2, sort_keys=True)
        tmp_name = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{target.name}.", suffix='.tmp', dir=str(target.parent)
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, target)
            tmp_name = None
        except OSError as e:
            logger.error(f"Failed to save resolution register to {target}: {e}")
            raise PersistenceError(f"Could not write register: {e}", path=str(target)) from e
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.debug(f"Saved resolution register ({len(self.register)} key(s)) to {target}")

    @staticmethod
    def load(path: PathLike) -> ResolutionRegister:
        """
        Read a register file.

        Never raises: a missing, unreadable or corrupt file yields an
        empty register.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding='utf-8'))
            return ResolutionRegister.from_dict(data)
        except FileNotFoundError:
            logger.debug(f"No resolution register at {path}, starting empty")
        except (OSError, ValueError, PersistenceCorruptError) as e:
            logger.warning(f"Resolution register at {path} unreadable, starting empty: {e}")
        return ResolutionRegister()
