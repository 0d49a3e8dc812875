"""Webhook payload shapes and the domain events decoded from them.

The provider's payloads have drifted between API versions (renamed fields,
fields made optional). Models here accept the known variants and ignore
unknown fields; only the stable set of fields is required.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tracking_webhook_service.domain.models import TRACKING_STARTED, TRACKING_STOPPED


class PayloadModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class Tag(PayloadModel):
    id: str
    key: str | None = None
    label: str
    scope: str | None = None
    space_id: str | None = None


class Note(PayloadModel):
    # None means the provider sent no text; "" means an explicitly empty note
    text: str | None = None
    tags: list[Tag] = Field(default_factory=list)
    mentions: list[Tag] = Field(default_factory=list)


class Activity(PayloadModel):
    id: str
    name: str
    color: str
    integration_id: str = Field(validation_alias=AliasChoices("integration", "integrationId", "integration_id"))
    space_id: str | None = None
    device_side_index: int | None = Field(
        default=None, validation_alias=AliasChoices("deviceSide", "deviceSideIndex", "device_side_index")
    )


class Tracking(PayloadModel):
    id: str
    activity: Activity
    started_at: datetime
    note: Note = Field(default_factory=Note)


class Duration(PayloadModel):
    started_at: datetime
    stopped_at: datetime


class TimeEntry(PayloadModel):
    id: str
    activity: Activity
    duration: Duration
    note: Note = Field(default_factory=Note)


# Inbound envelopes


class Envelope(PayloadModel):
    user_id: str
    # Seen as eventType, eventtype, event_type and event across provider versions
    event_type: str | None = Field(
        default=None, validation_alias=AliasChoices("eventType", "eventtype", "event_type", "event")
    )


class StartedData(PayloadModel):
    current_tracking: Tracking


class StoppedData(PayloadModel):
    new_time_entry: TimeEntry | None = None


class TrackingStartedEnvelope(Envelope):
    data: StartedData


class TrackingStoppedEnvelope(Envelope):
    data: StoppedData | None = None


# Domain events


class TrackingStarted(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["trackingStarted"] = TRACKING_STARTED
    user_id: str
    tracking: Tracking


class TrackingStopped(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["trackingStopped"] = TRACKING_STOPPED
    user_id: str
    time_entry: TimeEntry | None = None


DomainEvent = Annotated[Union[TrackingStarted, TrackingStopped], Field(discriminator="kind")]
