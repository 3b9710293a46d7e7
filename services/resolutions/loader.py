"""
Template Loader

Loads and caches resolution templates from YAML/JSON files.
Checks all templates on startup and fails fast if any are invalid.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml

from .types import FIELD_TYPES, Template
from .exceptions import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

# Paths
DOCUMENTS_DIR = Path(__file__).parent.parent.parent / 'documents'
TEMPLATE_GLOBS = ('*.yml', '*.yaml', '*.json')
# Data files that live beside templates but are not templates
NON_TEMPLATE_FILES = {'entities.yml', 'entities.yaml', 'entities.json'}


class TemplateLoader:
    """
    Singleton loader for resolution templates.

    Loads every template file from the documents/ directory on startup
    and caches them by id for lookup during request handling.

    Usage:
        # On app startup
        TemplateLoader.load_all()

        # During request handling
        template = TemplateLoader.get('resolution.distribution.v1')
    """

    _templates: Dict[str, Template] = {}
    _directory: Path = DOCUMENTS_DIR
    _loaded: bool = False

    @classmethod
    def load_all(cls, directory: Optional[Union[str, Path]] = None) -> None:
        """
        Load all template definitions.

        Called at app startup. If any template fails to load, raises
        ConfigurationError with all errors listed.
        """
        if directory is not None:
            cls._directory = Path(directory)
        cls._templates.clear()
        errors = []

        if not cls._directory.exists():
            logger.warning(f"Documents directory not found: {cls._directory}")
            return

        files = sorted(
            p for pattern in TEMPLATE_GLOBS for p in cls._directory.glob(pattern)
            if p.name not in NON_TEMPLATE_FILES
        )

        if not files:
            logger.warning(f"No templates found in {cls._directory}")
            return

        for path in files:
            try:
                template = cls._load_file(path)

                if template.id in cls._templates:
                    errors.append(
                        f"{path.name}: Duplicate template id '{template.id}' "
                        f"(already defined in another file)"
                    )
                    continue

                cls._templates[template.id] = template
                logger.debug(f"Loaded template: {template.id}")

            except (ValidationError, yaml.YAMLError) as e:
                errors.append(f"{path.name}: {e}")
            except (KeyError, TypeError, ValueError) as e:
                errors.append(f"{path.name}: Malformed template - {e!r}")

        if errors:
            error_msg = "Template configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            logger.error(error_msg)
            raise ConfigurationError(error_msg)

        cls._loaded = True
        logger.info(f"Loaded {len(cls._templates)} template(s)")

    @classmethod
    def _load_file(cls, path: Path) -> Template:
        raw = yaml.safe_load(path.read_text(encoding='utf-8'))
        if not raw:
            raise ValidationError("Empty template definition")
        return cls.parse(raw)

    @classmethod
    def parse(cls, raw: dict) -> Template:
        """
        Build a Template from a parsed dict.

        Only checks what the engine relies on: unique field ids.
        """
        field_ids = [f.get('id') for f in raw.get('fields', [])]
        if len(field_ids) != len(set(field_ids)):
            duplicates = {k for k in field_ids if field_ids.count(k) > 1}
            raise ValidationError(f"Duplicate field ids: {sorted(duplicates)}")
        template = Template.from_dict(raw)
        for f in template.fields:
            if f.type not in FIELD_TYPES:
                logger.warning(f"Template {template.id}: unknown field type '{f.type}' on {f.id}")
        return template

    @classmethod
    def get(cls, template_id: str) -> Optional[Template]:
        """
        Get a template by id.

        Returns None if not found.
        """
        return cls._templates.get(template_id)

    @classmethod
    def get_or_raise(cls, template_id: str) -> Template:
        template = cls.get(template_id)
        if not template:
            raise ValidationError(f"Unknown template: {template_id}")
        return template

    @classmethod
    def register(cls, template: Template) -> None:
        """Add a template that did not come from disk."""
        cls._templates[template.id] = template

    @classmethod
    def all(cls) -> List[Template]:
        return sorted(cls._templates.values(), key=lambda t: t.name)

    @classmethod
    def all_ids(cls) -> List[str]:
        return list(cls._templates.keys())

    @classmethod
    def is_loaded(cls) -> bool:
        return cls._loaded

    @classmethod
    def clear(cls) -> None:
        """Clear all cached templates. Mainly for testing."""
        cls._templates.clear()
        cls._loaded = False

    @classmethod
    def reload(cls) -> None:
        cls.clear()
        try:
            cls.load_all()
        except ConfigurationError as e:
            logger.error(f"Failed to reload templates: {e}")
            raise
