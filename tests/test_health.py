"""
Test suite for health and readiness endpoints.
"""

import time
from unittest.mock import patch

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session


class TestHealthEndpoint:
    """Test /healthz endpoint functionality."""

    def test_health_endpoint_always_returns_200(self, client):
        response = client.get('/healthz')
        assert response.status_code == 200

    def test_health_alias(self, client):
        assert client.get('/health').status_code == 200

    def test_health_endpoint_response_format(self, client):
        """Test health endpoint response format."""
        data = client.get('/healthz').get_json()

        assert set(data.keys()) == {'status', 'service', 'timestamp'}
        assert data['status'] == 'healthy'
        assert data['service'] == 'prompt-manager-api'
        assert abs(time.time() - data['timestamp']) < 5

    def test_health_endpoint_head_method(self, client):
        response = client.head('/healthz')
        assert response.status_code == 200
        assert response.data == b''


class TestReadinessEndpoint:
    """Test /readyz endpoint functionality."""

    def test_ready_when_database_answers(self, client):
        response = client.get('/readyz')

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'ready'
        assert data['checks'] == {'database': True}

    def test_not_ready_when_database_fails(self, client):
        """Readiness fails while liveness stays healthy."""
        db_down = OperationalError('SELECT 1', {}, Exception('db down'))
        with patch.object(Session, 'execute', side_effect=db_down):
            response = client.get('/readyz')

        assert response.status_code == 503
        data = response.get_json()
        assert data['status'] == 'not_ready'
        assert data['checks']['database'] is False
        assert client.get('/healthz').status_code == 200


class TestMetricsEndpoint:

    def test_metrics_exposed_in_prometheus_format(self, client):
        client.get('/healthz')

        response = client.get('/metrics')

        assert response.status_code == 200
        assert response.content_type.startswith('text/plain')
        assert b'prompt_manager_http_requests_total' in response.data

    def test_metrics_disabled(self, tmp_path):
        from prompt_manager.factory import create_app
        from conftest import TEST_CONFIG

        app = create_app({
            **TEST_CONFIG,
            'PROMPT_MANAGER_METRICS_ENABLED': False,
            'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'metrics.db'}",
        })

        assert app.test_client().get('/metrics').status_code == 404
