"""
Audit app configuration.
Subscribes to the order event stream and stores every event.
"""
from django.apps import AppConfig


class AuditConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.audit'
    verbose_name = 'Audit & Logging'

    def ready(self):
        """Connect the order event receiver."""
        from apps.audit.logging_utils import record_order_event
        from apps.orders.signals import order_event

        order_event.connect(record_order_event, dispatch_uid='audit.record_order_event')
