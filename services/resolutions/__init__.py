"""
Resolution Document Engine

A template-driven system for producing uniquely numbered resolutions.
Templates are defined in YAML files and processed through a pipeline
of validation, resolution id minting and rendering.

Usage:
    from services.resolutions import TemplateLoader, DocumentAssembler, ResolutionIdService

    # On app startup
    TemplateLoader.load_all()
    assembler = DocumentAssembler(ResolutionIdService.from_file(register_path))

    # When generating a document
    template = TemplateLoader.get('resolution.distribution.v1')
    result = assembler.generate(template, form_values)
"""

from .types import (
    Condition,
    Validation,
    Compute,
    FieldDefinition,
    DocumentText,
    Template,
    AssemblyResult,
)

from .exceptions import (
    DocumentError,
    ConfigurationError,
    ValidationError,
    ResolutionError,
    MissingValueError,
    TypeMismatchError,
    PersistenceError,
    PersistenceCorruptError,
)

from .values import ValueStore
from .conditions import is_visible, is_empty, validate_field, validate
from .sequence import ResolutionRegister, ResolutionIdService
from .renderer import TemplateRenderer, render
from .directory import Entity, EntityDirectory
from .filename import render_file_name
from .loader import TemplateLoader
from .assembly import DocumentAssembler, prime_defaults
from .filters import FILTERS, apply_filter, register_filter

__all__ = [
    # Types
    'Condition',
    'Validation',
    'Compute',
    'FieldDefinition',
    'DocumentText',
    'Template',
    'AssemblyResult',

    # Exceptions
    'DocumentError',
    'ConfigurationError',
    'ValidationError',
    'ResolutionError',
    'MissingValueError',
    'TypeMismatchError',
    'PersistenceError',
    'PersistenceCorruptError',

    # Services
    'ValueStore',
    'is_visible',
    'is_empty',
    'validate_field',
    'validate',
    'ResolutionRegister',
    'ResolutionIdService',
    'TemplateRenderer',
    'render',
    'Entity',
    'EntityDirectory',
    'render_file_name',
    'TemplateLoader',
    'DocumentAssembler',
    'prime_defaults',

    # Filters
    'FILTERS',
    'apply_filter',
    'register_filter',
]
