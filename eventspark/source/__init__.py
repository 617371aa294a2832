from eventspark.source.base import EventSource
from eventspark.source.database import DatabaseEventSource
from eventspark.source.demo import DemoEventSource
from eventspark.source.rest import RestEventSource

__all__ = ["EventSource", "DatabaseEventSource", "DemoEventSource", "RestEventSource"]
