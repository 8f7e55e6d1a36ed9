from uuid import UUID

from django.shortcuts import get_object_or_404
from ninja_extra import ControllerBase, api_controller, route

from events import schema
from events.models import Event, EventQuerySet


@api_controller("/events", auth=None, tags=["Events"])
class EventController(ControllerBase):
    @route.get("", url_name="event_list", response=list[schema.EventSchema])
    def list_events(self) -> EventQuerySet:
        """List the events currently on sale with their remaining capacity."""
        return Event.objects.active()

    @route.get("/{uuid:event_id}", url_name="event_detail", response=schema.EventSchema)
    def get_event(self, event_id: UUID) -> Event:
        """Get an event on sale."""
        return get_object_or_404(Event.objects.active(), pk=event_id)
