"""
Tests for observability layer.

Validates that metrics, logs, and events are emitted correctly
without logging PHI/PII.
"""
import json
import logging
from unittest.mock import MagicMock, Mock, patch

import pytest
from urllib3.exceptions import HTTPError

from apps.core.observability.correlation import (
    RequestCorrelationMiddleware,
    clear_request_context,
    get_request_id,
    get_user_id,
    set_user_context,
)
from apps.core.observability.events import log_domain_event
from apps.core.observability.logging import (
    SanitizedJSONFormatter,
    sanitize_dict,
)
from apps.core.observability.metrics import metrics


@pytest.fixture(autouse=True)
def _clean_request_context():
    yield
    clear_request_context()


class TestRequestCorrelation:
    """Test request correlation middleware."""

    def test_generates_request_id_if_missing(self):
        middleware = RequestCorrelationMiddleware(lambda r: Mock(status_code=200))
        request = Mock(META={}, path='/api/v1/doctor/queue', method='GET')
        request.user = Mock(is_authenticated=False)

        middleware.process_request(request)

        assert request.request_id
        assert get_request_id() == request.request_id

    def test_propagates_existing_request_id(self):
        middleware = RequestCorrelationMiddleware(lambda r: Mock(status_code=200))
        request = Mock(META={'HTTP_X_REQUEST_ID': 'req-123'}, path='/api/v1/doctor/queue', method='GET')
        request.user = Mock(is_authenticated=False)

        middleware.process_request(request)

        assert request.request_id == 'req-123'

    def test_header_on_real_response(self, client):
        response = client.get('/healthz', HTTP_X_REQUEST_ID='trace-me')

        assert response['X-Request-ID'] == 'trace-me'

    def test_principal_context(self):
        set_user_context(42, {'lab', 'doctor'})

        assert get_user_id() == '42'


class TestSanitization:
    """Test PHI/PII sanitization."""

    def test_sensitive_fields_redacted(self):
        data = {
            'case_id': 7,
            'otp': 123456,
            'reason': 'Unconscious patient',
            'email': 'jane@university.edu',
        }

        sanitized = sanitize_dict(data)

        assert sanitized['case_id'] == 7
        assert sanitized['otp'] == '[REDACTED]'
        assert sanitized['reason'] == '[REDACTED]'
        assert sanitized['email'] == '[REDACTED]'

    def test_nested_and_lists(self):
        data = {'report': {'results_data': {'hb': 13.1}, 'status': 'Complete'}, 'items': [{'phone': '9'}]}

        sanitized = sanitize_dict(data)

        assert sanitized['report']['results_data'] == '[REDACTED]'
        assert sanitized['report']['status'] == 'Complete'
        assert sanitized['items'] == [{'phone': '[REDACTED]'}]

    def test_formatter_redacts_extra_fields(self):
        record = logging.LogRecord('apps.test', logging.INFO, __file__, 1, 'OTP e-mailed', None, None)
        record.recipient = 'jane@university.edu'
        record.patient_id = 3

        payload = json.loads(SanitizedJSONFormatter().format(record))

        assert payload['message'] == 'OTP e-mailed'
        assert payload['recipient'] == '[REDACTED]'
        assert payload['patient_id'] == 3
        assert 'filename' not in payload


class TestDomainEvents:

    @patch('apps.core.observability.events.logger')
    def test_event_structure(self, mock_logger):
        log_domain_event(
            'lab.report_transition',
            entity_type='LabReport',
            entity_id='9',
            entity_ids={'case_id': '4'},
            from_status='Sample Collected',
            to_status='Complete',
        )

        message = mock_logger.info.call_args.args[0]
        extra = mock_logger.info.call_args.kwargs['extra']
        assert message == 'Domain event: lab.report_transition'
        assert extra['event'] == 'lab.report_transition'
        assert extra['result'] == 'success'
        assert extra['case_id'] == '4'
        assert extra['to_status'] == 'Complete'

    @patch('apps.core.observability.events.logger')
    def test_warning_results(self, mock_logger):
        log_domain_event('otp.override', entity_type='Case', entity_id='1', result='warning', reason='x')

        extra = mock_logger.warning.call_args.kwargs['extra']
        assert extra['reason'] == '[REDACTED]'
        mock_logger.info.assert_not_called()

    @patch('apps.core.observability.events.logger')
    def test_failure_results(self, mock_logger):
        log_domain_event('otp.email', result='failure')

        mock_logger.error.assert_called_once()


@pytest.mark.django_db
class TestHealthChecks:

    def test_healthz(self, client):
        response = client.get('/healthz')

        assert response.status_code == 200
        assert response.json()['status'] == 'ok'

    def test_readyz(self, client):
        storage = MagicMock()
        storage.bucket_exists.return_value = True
        with patch('apps.core.observability.health.get_minio_client', return_value=storage):
            response = client.get('/readyz')

        assert response.status_code == 200
        assert response.json()['checks'] == {'database': True, 'object_storage': True}

    def test_readyz_storage_down(self, client):
        storage = MagicMock()
        storage.bucket_exists.side_effect = HTTPError('connection refused')
        with patch('apps.core.observability.health.get_minio_client', return_value=storage):
            response = client.get('/readyz')

        assert response.status_code == 503
        assert response.json()['checks']['object_storage'] is False


class TestAntiCardinality:
    """Metric labels stay bounded: no ids, e-mails or free text."""

    FORBIDDEN = {'user_id', 'patient_id', 'case_id', 'report_id', 'email', 'reason', 'otp'}

    @pytest.mark.parametrize('name', [
        'http_requests_total',
        'otp_issued_total',
        'otp_verifications_total',
        'otp_email_delivery_total',
        'lab_status_transitions_total',
        'storage_cleanup_failures_total',
        'inventory_dispensed_total',
    ])
    def test_labels_are_bounded(self, name):
        metric = getattr(metrics, name)

        assert not set(metric._labelnames) & self.FORBIDDEN

    def test_track_duration_observes(self):
        histogram = Mock()

        @metrics.track_duration(histogram)
        def work():
            return 'done'

        assert work() == 'done'
        histogram.observe.assert_called_once()
