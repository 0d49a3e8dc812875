"""Domain services exports."""

from tracking_webhook_service.services.auth import AuthSession
from tracking_webhook_service.services.catalog import EventCatalog
from tracking_webhook_service.services.sinks import EventSink, LoggingEventSink, QueueingEventSink
from tracking_webhook_service.services.subscriptions import SubscriptionReconciler

__all__ = [
    "AuthSession",
    "EventCatalog",
    "SubscriptionReconciler",
    "EventSink",
    "LoggingEventSink",
    "QueueingEventSink",
]
