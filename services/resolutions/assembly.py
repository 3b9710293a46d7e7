"""
Document Assembly

Turns a template plus user-entered values into a finished resolution:

    Validating -> Computing -> Rendering

Validation failures stop the pipeline before the sequence service is
touched, so counters only advance for documents that are produced.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, Optional

from .conditions import parse_calendar_date, validate
from .directory import EntityDirectory
from .exceptions import PersistenceError
from .filename import render_file_name
from .renderer import TemplateRenderer
from .sequence import ResolutionIdService
from .types import (
    GENERATE_RESOLUTION_ID,
    RESOLUTION_ID_FIELD,
    AssemblyResult,
    Template,
)
from .values import ValueStore

logger = logging.getLogger(__name__)

BLANK_SIGNER = {'name': '', 'title': '', 'signatureBlock': '(Signature)'}


class DocumentAssembler:
    """
    Orchestrates validation, resolution id minting and rendering.

    The sequence service is injected; the assembler holds no counter
    state of its own.

    Usage:
        assembler = DocumentAssembler(ResolutionIdService.from_file(path), directory)
        result = assembler.generate(template, form_values)
        if result.ok:
            export(result.title, result.body, result.file_name)
        else:
            show(result.errors)
    """

    def __init__(self, id_service: ResolutionIdService,
                 directory: Optional[EntityDirectory] = None,
                 renderer: Optional[TemplateRenderer] = None,
                 today: Callable[[], date] = date.today):
        self.id_service = id_service
        self.directory = directory
        self.renderer = renderer or TemplateRenderer()
        self.today = today

    def build_store(self, template: Template, values: Dict[str, Any]) -> ValueStore:
        """
        Copy the user's values into a fresh store.

        Entity fields given as a bare id are expanded through the directory.
        """
        store = ValueStore(values, template_meta=template.metadata)
        if self.directory is None:
            return store

        for field in template.fields:
            if field.type != 'entity':
                continue
            value = store.lookup(field.id)
            if isinstance(value, str) and value:
                entity = self.directory.get(value)
                if entity is None:
                    logger.warning(f"Unknown entity '{value}' for field {field.id}")
                    continue
                store.set(field.id, entity.to_values())
        return store

    def generate(self, template: Template, values: Dict[str, Any]) -> AssemblyResult:
        """
        Run the full pipeline.

        Returns:
            AssemblyResult with errors (nothing rendered, no id minted)
            or with title, body, file name and resolution id.

        Raises:
            PersistenceError: if the advanced register cannot be saved
        """
        store = self.build_store(template, values)

        # Validating
        errors = validate(template, store)
        if errors:
            logger.info(f"Generation of {template.id} blocked by {len(errors)} validation error(s)")
            return AssemblyResult(errors=errors)

        # Computing
        resolution_id = self.compute_resolution_id(template, store)
        if resolution_id is not None:
            store.set(RESOLUTION_ID_FIELD, resolution_id)

        # Rendering
        title = self.renderer.render(template.document.title, store.copy())
        body = self.renderer.render(template.document.body_md, store.copy())
        file_name = render_file_name(template.file_name_pattern, store)

        logger.info(f"Generated {template.id} ({resolution_id or 'no resolution id'})")
        return AssemblyResult(
            title=title,
            body=body,
            file_name=file_name,
            resolution_id=resolution_id,
        )

    def compute_resolution_id(self, template: Template, store: ValueStore) -> Optional[str]:
        """
        Mint an id if the template declares a computed resolutionId field.

        Advances (and persists, when the service has a path) the register
        exactly once. If the save fails the counter is restored and
        PersistenceError propagates.
        """
        field = template.get_field(RESOLUTION_ID_FIELD)
        if field is None or field.compute is None or field.compute.fn != GENERATE_RESOLUTION_ID:
            return None

        args = field.compute.args
        entity_id = store.lookup(args.get('entityIdPath', ''))
        if not isinstance(entity_id, str) or not entity_id:
            logger.warning(f"{template.id}: entity id at '{args.get('entityIdPath')}' is empty")
            entity_id = ''

        on_date = parse_calendar_date(store.lookup(args.get('datePath', '')))
        if on_date is None:
            on_date = self.today()
            logger.warning(f"{template.id}: no usable date at '{args.get('datePath')}', using {on_date}")

        previous = self.id_service.register.get(entity_id, on_date.year)
        resolution_id = self.id_service.generate_resolution_id(entity_id, on_date, template.type_tag)
        if self.id_service.path is not None:
            try:
                self.id_service.save()
            except PersistenceError:
                # The id is never handed out, so the counter goes back
                self.id_service.register.restore(entity_id, on_date.year, previous)
                logger.error(f"{template.id}: register not saved, {resolution_id} withdrawn")
                raise
        return resolution_id


def prime_defaults(template: Template, values: Dict[str, Any],
                   today: Optional[date] = None) -> Dict[str, Any]:
    """
    Seed a new editing session.

    Missing date fields default to today's ISO date; signer lists are
    padded with blank rows up to minItems. Returns a new dict.
    """
    primed = dict(values)
    today = today or date.today()
    for field in template.fields:
        if field.type == 'date' and primed.get(field.id) is None:
            primed[field.id] = today.isoformat()
        elif field.type == 'signer' and field.min_items and not primed.get(field.id):
            primed[field.id] = [dict(BLANK_SIGNER) for _ in range(field.min_items)]
    return primed
