"""
Metrics instrumentation wrapper around prometheus_client.
"""
import time
from functools import wraps

from prometheus_client import Counter, Histogram


class MetricsRegistry:
    """
    Central metrics registry for the Medical Center API.

    Provides typed access to all application metrics.
    """

    def __init__(self):
        self._setup_metrics()

    def _create_counter(self, name, description, labels=None):
        return Counter(name, description, labels or [])

    def _create_histogram(self, name, description, labels=None, buckets=None):
        if buckets:
            return Histogram(name, description, labels or [], buckets=buckets)
        return Histogram(name, description, labels or [])

    def _setup_metrics(self):
        # ===================================================================
        # HTTP Metrics
        # ===================================================================
        self.http_requests_total = self._create_counter(
            'http_requests_total',
            'Total HTTP requests',
            ['path', 'method', 'status']
        )

        self.http_request_duration_seconds = self._create_histogram(
            'http_request_duration_seconds',
            'HTTP request duration in seconds',
            ['path', 'method'],
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
        )

        self.exceptions_total = self._create_counter(
            'exceptions_total',
            'Total exceptions',
            ['exception_type', 'location']
        )

        # ===================================================================
        # Patient History (OTP gate) Metrics
        # ===================================================================
        self.otp_issued_total = self._create_counter(
            'otp_issued_total',
            'OTP issuance attempts',
            ['result']  # issued, patient_not_found, contact_not_found
        )

        self.otp_verifications_total = self._create_counter(
            'otp_verifications_total',
            'OTP verification attempts',
            ['result']  # accepted, rejected
        )

        self.otp_email_delivery_total = self._create_counter(
            'otp_email_delivery_total',
            'OTP e-mail deliveries',
            ['result']  # sent, failed
        )

        self.otp_overrides_total = self._create_counter(
            'otp_overrides_total',
            'Emergency history overrides recorded'
        )

        # ===================================================================
        # Clinical Metrics
        # ===================================================================
        self.cases_created_total = self._create_counter(
            'cases_created_total',
            'Cases opened at vitals intake'
        )

        self.case_finalizations_total = self._create_counter(
            'case_finalizations_total',
            'Case finalization attempts',
            ['state', 'result']  # result: finalized, conflict
        )

        # ===================================================================
        # Lab Metrics
        # ===================================================================
        self.lab_tests_requested_total = self._create_counter(
            'lab_tests_requested_total',
            'Lab tests requested by doctors'
        )

        self.lab_status_transitions_total = self._create_counter(
            'lab_status_transitions_total',
            'Lab report status transitions',
            ['from_status', 'to_status']
        )

        self.lab_results_submitted_total = self._create_counter(
            'lab_results_submitted_total',
            'Lab results submitted',
            ['with_file']
        )

        self.lab_update_duration_seconds = self._create_histogram(
            'lab_update_duration_seconds',
            'Duration of lab report file updates (uploads included)',
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
        )

        # ===================================================================
        # Object Storage Metrics
        # ===================================================================
        self.storage_uploads_total = self._create_counter(
            'storage_uploads_total',
            'Objects uploaded to storage',
            ['result']
        )

        self.storage_cleanup_failures_total = self._create_counter(
            'storage_cleanup_failures_total',
            'Best-effort object deletions that failed',
            ['reason']  # removed_after_commit, rollback
        )

        # ===================================================================
        # Inventory Metrics
        # ===================================================================
        self.inventory_dispensed_total = self._create_counter(
            'inventory_dispensed_total',
            'Inventory dispense attempts',
            ['result']  # dispensed, insufficient
        )

        self.inventory_allocation_fefo_duration_seconds = self._create_histogram(
            'inventory_allocation_fefo_duration_seconds',
            'FEFO batch allocation duration',
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5]
        )

        # ===================================================================
        # Public Registration Metrics
        # ===================================================================
        self.registration_requests_total = self._create_counter(
            'registration_requests_total',
            'Public registration requests',
            ['endpoint', 'result']
        )

    def track_duration(self, histogram_metric):
        """
        Decorator to track function duration.

        Usage:
            @metrics.track_duration(metrics.lab_update_duration_seconds)
            def update_test_files(...):
                ...
        """
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    return func(*args, **kwargs)
                finally:
                    histogram_metric.observe(time.time() - start_time)
            return wrapper
        return decorator


# Global metrics instance
metrics = MetricsRegistry()
