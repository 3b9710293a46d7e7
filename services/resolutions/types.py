"""
Resolution Template Type Definitions

Dataclasses representing resolution templates loaded from YAML/JSON.
These are immutable after loading.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# Field type tags understood by the engine. Anything else is carried through
# untouched for the form layer.
FIELD_TYPES = (
    'text', 'multiline', 'date', 'money', 'number', 'boolean',
    'enum', 'multiselect', 'entity', 'signer', 'computed',
)

RESOLUTION_ID_FIELD = 'resolutionId'
GENERATE_RESOLUTION_ID = 'generateResolutionId'


@dataclass(frozen=True)
class Condition:
    """
    Visibility (or requiredness) rule referencing another field.

    Attributes:
        field: Path of the referenced field (e.g., "method")
        equals: Scalar the referenced value must equal (str, bool or number)
        includes: Needle the referenced array must contain
    """
    field: str
    equals: Any = None
    includes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['Condition']:
        if not data:
            return None
        return cls(
            field=data['field'],
            equals=data.get('equals'),
            includes=data.get('includes'),
        )


@dataclass(frozen=True)
class Validation:
    """Cross-field rules for a single field."""
    not_equal_field: Optional[str] = None
    gte_field: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['Validation']:
        if not data:
            return None
        return cls(
            not_equal_field=data.get('notEqualField'),
            gte_field=data.get('gteField'),
            message=data.get('message'),
        )


@dataclass(frozen=True)
class Compute:
    """
    Descriptor for a computed field.

    Only `generateResolutionId` is understood, with args
    `entityIdPath` and `datePath`.
    """
    fn: str
    args: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['Compute']:
        if not data:
            return None
        return cls(fn=data['fn'], args=dict(data.get('args') or {}))


@dataclass(frozen=True)
class FieldDefinition:
    """
    One input slot in a template.

    Attributes:
        id: Unique within the template; also the top-level value key
        label: Display label, used in validation messages
        type: Field type tag (text, date, entity, signer, computed, ...)
    """
    id: str
    label: str
    type: str
    required: bool = False
    min_items: Optional[int] = None
    options: Tuple[str, ...] = ()
    placeholder: Optional[str] = None
    help: Optional[str] = None
    hidden: bool = False
    visible_if: Optional[Condition] = None
    required_if: Optional[Condition] = None
    validate: Optional[Validation] = None
    compute: Optional[Compute] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FieldDefinition':
        return cls(
            id=data['id'],
            label=data.get('label', data['id']),
            type=data.get('type', 'text'),
            required=bool(data.get('required', False)),
            min_items=data.get('minItems'),
            options=tuple(data.get('options') or ()),
            placeholder=data.get('placeholder'),
            help=data.get('help'),
            hidden=bool(data.get('hidden', False)),
            visible_if=Condition.from_dict(data.get('visibleIf')),
            required_if=Condition.from_dict(data.get('requiredIf')),
            validate=Validation.from_dict(data.get('validate')),
            compute=Compute.from_dict(data.get('compute')),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the template wire shape (omits unset keys)."""
        out: Dict[str, Any] = {'id': self.id, 'label': self.label, 'type': self.type}
        if self.required:
            out['required'] = True
        if self.min_items is not None:
            out['minItems'] = self.min_items
        if self.options:
            out['options'] = list(self.options)
        if self.placeholder:
            out['placeholder'] = self.placeholder
        if self.help:
            out['help'] = self.help
        if self.hidden:
            out['hidden'] = True
        for key, cond in (('visibleIf', self.visible_if), ('requiredIf', self.required_if)):
            if cond:
                out[key] = {
                    k: v for k, v in
                    (('field', cond.field), ('equals', cond.equals), ('includes', cond.includes))
                    if v is not None
                }
        if self.validate:
            out['validate'] = {
                k: v for k, v in
                (('notEqualField', self.validate.not_equal_field),
                 ('gteField', self.validate.gte_field),
                 ('message', self.validate.message))
                if v is not None
            }
        if self.compute:
            out['compute'] = {'fn': self.compute.fn, 'args': dict(self.compute.args)}
        return out


@dataclass(frozen=True)
class DocumentText:
    """Raw template strings for the rendered output."""
    title: str
    body_md: str


@dataclass(frozen=True)
class Template:
    """
    Complete resolution template loaded from a definition file.

    One file = one Template. Loaded once per document kind and never mutated.
    """
    id: str
    name: str
    version: int
    type_tag: str
    file_name_pattern: str
    fields: Tuple[FieldDefinition, ...]
    document: DocumentText

    @property
    def metadata(self) -> Dict[str, Any]:
        """Values exposed to templates under `$template`."""
        return {'typeTag': self.type_tag}

    def get_field(self, field_id: str) -> Optional[FieldDefinition]:
        """Get a field definition by its id."""
        return next((f for f in self.fields if f.id == field_id), None)

    def get_field_ids(self) -> List[str]:
        return [f.id for f in self.fields]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Template':
        """
        Create a Template from a parsed YAML/JSON dict.

        Raises KeyError for missing mandatory keys; the loader turns
        that into a ConfigurationError.
        """
        document = data['document']
        return cls(
            id=data['id'],
            name=data['name'],
            version=int(data.get('version', 1)),
            type_tag=data['typeTag'],
            file_name_pattern=data.get('fileNamePattern', '{{resolutionId}}'),
            fields=tuple(FieldDefinition.from_dict(f) for f in data.get('fields', [])),
            document=DocumentText(
                title=document.get('title', ''),
                body_md=document.get('bodyMd', ''),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'version': self.version,
            'typeTag': self.type_tag,
            'fileNamePattern': self.file_name_pattern,
            'fields': [f.to_dict() for f in self.fields],
            'document': {'title': self.document.title, 'bodyMd': self.document.body_md},
        }


@dataclass
class AssemblyResult:
    """
    Outcome of one generation attempt.

    Either `errors` is non-empty (nothing rendered, counter untouched)
    or title/body are populated.
    """
    errors: List[str] = field(default_factory=list)
    title: Optional[str] = None
    body: Optional[str] = None
    file_name: Optional[str] = None
    resolution_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        if not self.ok:
            return {'success': False, 'errors': list(self.errors)}
        return {
            'success': True,
            'title': self.title,
            'body': self.body,
            'fileName': self.file_name,
            'resolutionId': self.resolution_id,
        }
