"""
Tests for the FastAPI endpoints, using a temporary data directory.
"""

import inspect
import json

import pytest
from fastapi.testclient import TestClient

import api
from models import DAMAGE_TYPES
from dataset_loader import load_context


CONFIG = {
    'protectionTypes': [{'id': 'slashing100', 'displayName': '100% Slashing'}],
    'armorAccessTiers': [{'id': 'plate', 'displayName': 'Plate'}],
    'armorTypes': ['Bone', 'Leather', 'Plate'],
}

DATASET = {
    'metadata': {'dataset': 'test'},
    'results': [
        {'rank': 1, 'totalProtection': 5.44, 'encumbrance': 19.15, 'gear': {
            'piece1': {'description': 'Head - Bone', 'count': 1},
            'piece2': {'description': '(interchangeable) - Bone', 'count': 5},
        }},
        {'rank': 2, 'totalProtection': 5.50, 'encumbrance': 20.0, 'gear': {
            'piece1': {'description': 'Head - Leather', 'count': 1},
            'piece2': {'description': 'Chest - Leather', 'count': 1},
        }},
        {'rank': 3, 'totalProtection': 6.00, 'encumbrance': 25.0, 'gear': {
            'piece1': {'description': 'Head - Plate', 'count': 1},
            'piece2': {'description': '(interchangeable) - Plate', 'count': 5},
        }},
    ],
}


def armor_csv():
    header = 'Type,Slot,Encumbrance,' + ','.join(DAMAGE_TYPES)
    rows = [
        'Bone,Head,1.0,0.1,0.1,0.4',
        'Bone,Arms,0.5,0.1,0.1,0.2',
        'Leather,Head,1.5,0.2,0.2,0.5,0,0,0.3',
        'Leather,Chest,4.0,0.3,0.3,1.0',
        'Plate,Head,3.0,0.5,0.5,1.0',
        'Plate,Boots,2.0,0.4,0.4,0.8',
    ]
    return '\n'.join([header] + rows) + '\n'


@pytest.fixture
def client(tmp_path):
    (tmp_path / 'config.json').write_text(json.dumps(CONFIG))
    (tmp_path / 'armor.csv').write_text(armor_csv())
    (tmp_path / 'results-slashing100-plate.json').write_text(json.dumps(DATASET))

    api.state.reset(load_context(tmp_path))
    yield TestClient(api.app)
    api.state.reset()


def test_status(client):
    data = client.get('/api/status').json()
    assert data['status'] == 'ready'
    assert data['protection_type_count'] == 1
    assert data['armor_table_types'] == 3


def test_status_without_data(tmp_path):
    api.state.reset()
    api.state.data_dir = str(tmp_path / 'nowhere')
    try:
        data = TestClient(api.app).get('/api/status').json()
        assert data['status'] == 'no_data'
        assert data['config_loaded'] is False
        assert data['error']
    finally:
        api.state.data_dir = None
        api.state.reset()


def test_config(client):
    data = client.get('/api/config').json()
    assert data['protectionTypes'] == [{'id': 'slashing100', 'displayName': '100% Slashing'}]
    assert data['armorTypes'] == ['Bone', 'Leather', 'Plate']


def test_url_state_normalizes_and_validates(client):
    data = client.get('/api/url-state?enc=20.0&profile=slashing100&tier=gold&encUnit=raw').json()
    assert data['query'] == 'profile=slashing100'
    assert data['state']['tier'] is None


def test_optimize(client):
    data = client.get('/api/optimize?profile=slashing100&tier=plate&enc=20').json()
    assert data['found'] is True
    assert data['candidate']['totalProtection'] == 5.50
    assert data['gear']['fixed'] == {'head': 'Leather', 'chest': 'Leather', 'legs': None}
    assert [s['label'] for s in data['realStats']['slots']] == ['Head', 'Chest']
    assert data['realStats']['totals']['encumbrance'] == pytest.approx(5.5)
    assert data['effectiveEncumbrance'] == pytest.approx(5.5)
    assert data['query'] == 'profile=slashing100&tier=plate'
    assert data['url'] == '/?profile=slashing100&tier=plate'
    assert [s['elemental'] for s in data['realStats']['slots']] == [0.3, 0.0]
    assert data['realStats']['totals']['elemental'] == pytest.approx(0.3)


def test_optimize_with_feather(client):
    query = 'profile=slashing100&tier=plate&enc=20&modifierEnabled=true&modifierValue=5&requiredHeadArmor=Plate'
    data = client.get(f'/api/optimize?{query}').json()
    assert data['found'] is True
    # Only the Plate-head set qualifies, so the target is pulled up to 25
    assert data['target'] == 25.0
    assert data['effectiveTarget'] == 30.0
    assert 'enc=25' in data['query']
    assert data['candidate']['encumbrance'] == 25.0
    assert [s['label'] for s in data['realStats']['slots']] == ['Head', 'Plate x5']
    # 3.0 + 5 * 2.0 = 13.0, minus Feather 5
    assert data['effectiveEncumbrance'] == pytest.approx(8.0)
    assert data['unitEncumbrance'] == {'magic': 0.0, 'archery': 0.0}


def test_optimize_clamps_target_into_range(client):
    data = client.get('/api/optimize?profile=slashing100&tier=plate&enc=5').json()
    assert data['target'] == 20.0
    assert data['found'] is True
    assert data['candidate']['totalProtection'] == 5.50
    assert data['query'] == 'profile=slashing100&tier=plate'

    data = client.get('/api/optimize?profile=slashing100&tier=plate&enc=90').json()
    assert data['target'] == 25.0
    assert data['candidate']['totalProtection'] == 6.00


def test_optimize_no_feasible_candidate(client, tmp_path):
    (tmp_path / 'results-slashing100-plate.json').write_text(json.dumps({'results': []}))
    api.state.datasets.clear()
    data = client.get('/api/optimize?profile=slashing100&tier=plate&enc=10').json()
    assert data['found'] is False
    assert data['candidate'] is None
    assert data['realStats'] is None


def test_optimize_reuses_real_stats(client):
    for _ in range(3):
        assert client.get('/api/optimize?profile=slashing100&tier=plate&enc=22').json()['found']
    assert len(api.state.real_stats) == 1


def test_optimize_requires_selection(client):
    assert client.get('/api/optimize').status_code == 400
    # Unknown tier is cleared by validation
    assert client.get('/api/optimize?profile=slashing100&tier=gold').status_code == 400


def test_optimize_missing_dataset(client, tmp_path):
    (tmp_path / 'results-slashing100-plate.json').unlink()
    api.state.datasets.clear()
    assert client.get('/api/optimize?profile=slashing100&tier=plate').status_code == 404


def test_range(client):
    data = client.get('/api/range?profile=slashing100&tier=plate').json()
    assert data['availableEncumbrances'] == [19.15, 20.0, 25.0]
    # Raw targets start at 20
    assert data['range'] == {'min': 20.0, 'max': 25.0}
    assert [p['label'] for p in data['presets']] == ['20', '40', '60']
    assert [p['available'] for p in data['presets']] == [True, False, False]


def test_range_with_head_filter_and_unit(client):
    query = 'profile=slashing100&tier=plate&encUnit=magic&modifierEnabled=true&requiredHeadArmor=Plate'
    data = client.get(f'/api/range?{query}').json()
    assert data['availableEncumbrances'] == [25.0]
    assert data['displayRange'] == {'min': 5.0, 'max': 5.0}


def test_range_echoes_clamped_target(client):
    data = client.get('/api/range?profile=slashing100&tier=plate&enc=3').json()
    assert data['query'] == 'profile=slashing100&tier=plate'
    data = client.get('/api/range?profile=slashing100&tier=plate&enc=80').json()
    assert data['query'] == 'profile=slashing100&tier=plate&enc=25'


def test_url_state_share_url(client):
    data = client.get('/api/url-state?profile=slashing100&enc=30').json()
    assert data['url'] == '/?' + data['query']
    assert client.get('/api/url-state').json()['url'] == '/'


def test_endpoints_run_in_threadpool():
    for endpoint in (api.get_status, api.get_config, api.get_url_state, api.get_range, api.optimize):
        assert not inspect.iscoroutinefunction(endpoint)
