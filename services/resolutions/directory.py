"""
Entity Directory

Read-only lookup of the legal entities a resolution can name.
Loaded from a YAML (or JSON) file:

    version: 1
    updatedAt: "2025-09-30"
    entities:
      - id: SHOLD
        legalName: Snowbird Holdings LLC
        jurisdiction: Wyoming
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Entity:
    """One directory record. `id` is the short code used in resolution ids."""
    id: str
    legal_name: str
    short_name: Optional[str] = None
    jurisdiction: Optional[str] = None
    ein: Optional[str] = None
    effective_date: Optional[str] = None
    status: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Entity':
        return cls(
            id=str(data['id']),
            legal_name=data['legalName'],
            short_name=data.get('shortName'),
            jurisdiction=data.get('jurisdiction'),
            ein=data.get('ein'),
            effective_date=data.get('effectiveDate'),
            status=data.get('status'),
            address=data.get('address'),
            email=data.get('email'),
        )

    def to_values(self) -> Dict[str, str]:
        """Mapping stored in the value store for an entity field."""
        return {
            'id': self.id,
            'legalName': self.legal_name,
            'shortName': self.short_name or '',
            'jurisdiction': self.jurisdiction or '',
            'ein': self.ein or '',
            'effectiveDate': self.effective_date or '',
            'status': self.status or '',
            'address': self.address or '',
            'email': self.email or '',
        }


class EntityDirectory:
    """
    Keyed lookup of entities.

    Usage:
        directory = EntityDirectory.from_file('documents/entities.yml')
        holdco = directory.get('SHOLD')
    """

    def __init__(self, entities: Optional[List[Entity]] = None,
                 version: int = 1, updated_at: str = ''):
        self.version = version
        self.updated_at = updated_at
        self._entities: Dict[str, Entity] = {}
        for entity in entities or []:
            self._entities[entity.id] = entity

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EntityDirectory':
        return cls(
            entities=[Entity.from_dict(e) for e in data.get('entities', [])],
            version=int(data.get('version', 1)),
            updated_at=str(data.get('updatedAt', '')),
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'EntityDirectory':
        """
        Load the directory file.

        Raises:
            ConfigurationError: if the file is missing or malformed
        """
        path = Path(path)
        try:
            raw = yaml.safe_load(path.read_text(encoding='utf-8')) or {}
            directory = cls.from_dict(raw)
        except (OSError, yaml.YAMLError, KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Could not load entity directory {path}: {e}") from e

        logger.info(f"Loaded {len(directory)} entit(ies) from {path.name}")
        return directory

    def get(self, entity_id: str) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def all(self) -> List[Entity]:
        return sorted(self._entities.values(), key=lambda e: e.legal_name)

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._entities
