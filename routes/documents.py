# routes/documents.py
"""
Resolution document routes.

JSON endpoints over the resolution engine:
- list and inspect templates
- seed a new form session with defaults
- validate + generate a resolution
"""

import logging
import threading

from flask import Blueprint, current_app, jsonify, request

from services.resolutions import (
    PersistenceError,
    TemplateLoader,
    prime_defaults,
)

logger = logging.getLogger(__name__)

documents_bp = Blueprint('documents', __name__, url_prefix='/documents')

# The resolution register is not internally synchronised; one generation at a time
_generation_lock = threading.Lock()


def _get_assembler():
    return current_app.extensions['resolution_assembler']


def _template_summary(template):
    return {
        'id': template.id,
        'name': template.name,
        'version': template.version,
        'typeTag': template.type_tag,
    }


@documents_bp.route('/templates')
def list_templates():
    """List all loaded templates."""
    return jsonify({
        'success': True,
        'templates': [_template_summary(t) for t in TemplateLoader.all()],
    })


@documents_bp.route('/templates/<template_id>')
def get_template(template_id):
    """Full template definition, including fields, for the form layer."""
    template = TemplateLoader.get(template_id)
    if template is None:
        return jsonify({'success': False, 'error': 'Template not found'}), 404
    return jsonify({'success': True, 'template': template.to_dict()})


@documents_bp.route('/templates/<template_id>/defaults', methods=['POST'])
def template_defaults(template_id):
    """Values for a fresh form session (today's dates, blank signer rows)."""
    template = TemplateLoader.get(template_id)
    if template is None:
        return jsonify({'success': False, 'error': 'Template not found'}), 404
    values = request.get_json(silent=True)
    if values is None:
        values = {}
    if not isinstance(values, dict):
        return jsonify({'success': False, 'error': 'Expected a JSON object of field values'}), 400
    return jsonify({'success': True, 'values': prime_defaults(template, values)})


@documents_bp.route('/templates/<template_id>/generate', methods=['POST'])
def generate(template_id):
    """Validate values and render the resolution."""
    template = TemplateLoader.get(template_id)
    if template is None:
        return jsonify({'success': False, 'error': 'Template not found'}), 404

    values = request.get_json(silent=True)
    if not isinstance(values, dict):
        return jsonify({'success': False, 'error': 'Expected a JSON object of field values'}), 400

    try:
        with _generation_lock:
            result = _get_assembler().generate(template, values)
    except PersistenceError as e:
        logger.error(f"Resolution register could not be saved: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500

    if not result.ok:
        return jsonify(result.to_dict()), 422
    return jsonify(result.to_dict())


@documents_bp.route('/entities')
def list_entities():
    """Entities available to entity fields."""
    directory = _get_assembler().directory
    entities = directory.all() if directory else []
    return jsonify({
        'success': True,
        'entities': [e.to_values() for e in entities],
    })
