"""Metrics Repository - Data access for pilot metrics events"""
from typing import Optional
from pymongo.collection import Collection

from .mongo_client import get_collection, to_document, PILOT_METRICS_EVENTS
from ..domain.models import PilotMetricsEvent
from ..domain.enums import MetricsEventType


class MetricsRepository:
    """Repository for pilot metrics events (append-only)"""

    def __init__(self, collection: Optional[Collection] = None):
        self._events: Collection = (
            collection if collection is not None else get_collection(PILOT_METRICS_EVENTS)
        )

    def create_event(self, event: PilotMetricsEvent) -> PilotMetricsEvent:
        self._events.insert_one(to_document(event, event.event_id))
        return event

    def count_events(self, event_type: MetricsEventType) -> int:
        return self._events.count_documents({"event_type": MetricsEventType(event_type).value})
