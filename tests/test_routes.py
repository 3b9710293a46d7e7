"""
HTTP routes over the resolution engine, exercised with the Flask test client.
"""

import json
import pytest
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from app import create_app
from config import TestingConfig
from services.resolutions import TemplateLoader

GENERATE_URL = '/documents/templates/resolution.distribution.v1/generate'


def create_values(**overrides):
    values = {
        'date': '2025-10-02',
        'fromEntity': 'SHOLD',
        'toEntity': 'SMARK',
        'amount': 250000,
        'method': 'ACH',
        'effectiveDate': '2025-10-05',
        'signers': [{'name': 'Thomas Plummer', 'title': 'Manager'}],
    }
    values.update(overrides)
    return values


@pytest.fixture
def register_path(tmp_path):
    return tmp_path / 'register.json'


@pytest.fixture
def client(register_path):
    class Config(TestingConfig):
        RESOLUTION_REGISTER_PATH = str(register_path)

    app = create_app(Config)
    yield app.test_client()
    TemplateLoader.clear()


class TestTemplateRoutes:

    def test_list_templates(self, client):
        response = client.get('/documents/templates')
        assert response.status_code == 200
        ids = [t['id'] for t in response.get_json()['templates']]
        assert 'resolution.distribution.v1' in ids
        assert 'resolution.officer-appointment.v1' in ids

    def test_get_template(self, client):
        response = client.get('/documents/templates/resolution.distribution.v1')
        data = response.get_json()
        assert data['template']['typeTag'] == 'DIST'
        field_ids = [f['id'] for f in data['template']['fields']]
        assert field_ids[0] == 'resolutionId'

    def test_unknown_template(self, client):
        assert client.get('/documents/templates/nope').status_code == 404
        assert client.post('/documents/templates/nope/generate', json={}).status_code == 404

    def test_defaults(self, client):
        response = client.post('/documents/templates/resolution.distribution.v1/defaults', json={})
        values = response.get_json()['values']
        assert len(values['signers']) == 1
        assert 'date' in values

    def test_defaults_non_object_body(self, client):
        url = '/documents/templates/resolution.distribution.v1/defaults'
        assert client.post(url, json=[1, 2]).status_code == 400
        assert client.post(url, json='x').status_code == 400

    def test_defaults_keep_posted_values(self, client):
        url = '/documents/templates/resolution.distribution.v1/defaults'
        values = client.post(url, json={'date': '2024-01-01'}).get_json()['values']
        assert values['date'] == '2024-01-01'

    def test_entities(self, client):
        entities = client.get('/documents/entities').get_json()['entities']
        assert {'SHOLD', 'SMARK', 'SPROP'} <= {e['id'] for e in entities}


class TestGenerateRoute:

    def test_generate(self, client, register_path):
        response = client.post(GENERATE_URL, json=create_values())
        assert response.status_code == 200

        data = response.get_json()
        assert data['success'] is True
        assert data['resolutionId'] == 'SHOLD-2025-01-RES-DIST'
        assert data['fileName'] == 'SHOLD-2025-01-RES-DIST - Snowbird Holdings Distribution'

        saved = json.loads(register_path.read_text())
        assert saved == {'counters': [{'entityId': 'SHOLD', 'year': 2025, 'value': 1}]}

    def test_validation_errors(self, client, register_path):
        response = client.post(GENERATE_URL, json=create_values(method='Wire'))
        assert response.status_code == 422
        assert response.get_json() == {'success': False, 'errors': ['Wire Reference is required.']}
        assert not register_path.exists()

    def test_non_object_body(self, client):
        response = client.post(GENERATE_URL, json=['not', 'an', 'object'])
        assert response.status_code == 400

    def test_sequence_continues_across_requests(self, client):
        client.post(GENERATE_URL, json=create_values())
        data = client.post(GENERATE_URL, json=create_values()).get_json()
        assert data['resolutionId'] == 'SHOLD-2025-02-RES-DIST'

    def test_register_survives_app_restart(self, client, register_path):
        client.post(GENERATE_URL, json=create_values())

        class Config(TestingConfig):
            RESOLUTION_REGISTER_PATH = str(register_path)

        restarted = create_app(Config).test_client()
        data = restarted.post(GENERATE_URL, json=create_values()).get_json()
        assert data['resolutionId'] == 'SHOLD-2025-02-RES-DIST'
