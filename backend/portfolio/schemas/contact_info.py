"""
Portfolio Backend — Contact Info Schemas
==========================================

What:  Pydantic models for the contact-info record, its write payload, its
       history snapshots and the API envelopes around them.
How:   Fields are snake_case in Python and camelCase on the wire
       (`socialLinks`, `responseTime`, `snapshotAt`) through alias
       generation. FastAPI serializes response models by alias.

Model roles:
    ContactInfoData    Content fields only. This is what a history snapshot
                       stores, so two identical writes produce equal data.
    ContactInfo        Content + updatedAt/updatedBy. The current record.
    ContactInfoUpdate  Write payload. Every field optional; which fields were
                       sent is read from `model_fields_set`.
    HistorySnapshot    One immutable history entry.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Availability values shown on the public profile
AVAILABILITY_STATUSES = ("available", "busy", "unavailable", "open")
DEFAULT_AVAILABILITY = "available"
CONTACT_METHODS = ("email", "phone", "linkedin", "other")
DEFAULT_CONTACT_METHOD = "email"


class WireModel(BaseModel):
    """Base for models exchanged with the frontend (camelCase JSON)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ══════════════════════════════════════════════════════════════════════════
# Record Models
# ══════════════════════════════════════════════════════════════════════════


class Address(WireModel):
    """Postal address. Empty strings mean "not provided"."""

    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""


class BusinessHours(WireModel):
    """Opening hours per weekday as free text, e.g. "9:00 AM - 6:00 PM" or "Closed"."""

    monday: str = ""
    tuesday: str = ""
    wednesday: str = ""
    thursday: str = ""
    friday: str = ""
    saturday: str = ""
    sunday: str = ""


class CallToAction(WireModel):
    title: str = ""
    subtitle: str = ""
    button_text: str = ""


class DisplaySettings(WireModel):
    """Which parts of the record the public contact page shows."""

    show_email: bool = True
    show_address: bool = True
    show_phone: bool = True
    show_business_hours: bool = True
    show_social_links: bool = True
    show_availability: bool = True


class Language(WireModel):
    language: str = ""
    proficiency: str = Field(default="", description="e.g. native, fluent, intermediate, basic")


class ContactInfoData(WireModel):
    """
    The content of the contact-info record.

    Defaults are the neutral values: a record created from a partial payload
    gets these for every field the payload omits.
    """

    email: str = Field(default="", description="Primary contact email")
    alternate_email: str = Field(default="", description="Secondary contact email")
    phone: str = Field(default="", description="Primary phone number")
    alternate_phone: str = Field(default="", description="Secondary phone number")
    address: Address = Field(default_factory=Address)
    business_hours: BusinessHours = Field(default_factory=BusinessHours)
    social_links: Dict[str, str] = Field(
        default_factory=dict,
        description="Provider name (lowercase) to profile URL",
    )
    website: str = Field(default="", description="Personal website URL")
    resume: str = Field(default="", description="Resume URL")
    portfolio: str = Field(default="", description="Portfolio URL")
    preferred_contact_method: str = Field(
        default=DEFAULT_CONTACT_METHOD,
        description=f"One of: {', '.join(CONTACT_METHODS)}",
    )
    availability: str = Field(
        default=DEFAULT_AVAILABILITY,
        description=f"One of: {', '.join(AVAILABILITY_STATUSES)}",
    )
    response_time: str = Field(default="", description="Free text, e.g. '24-48 hours'")
    timezone: str = Field(default="", description="Free text, e.g. 'UTC+1'")
    languages: List[Language] = Field(default_factory=list)
    call_to_action: CallToAction = Field(default_factory=CallToAction)
    display_settings: DisplaySettings = Field(default_factory=DisplaySettings)


CONTENT_FIELDS = tuple(ContactInfoData.model_fields)


class ContactInfo(ContactInfoData):
    """
    The current contact-info record.

    `ContactInfo.empty()` is the sentinel returned before the first write:
    neutral content and no updated_at / updated_by.
    """

    updated_at: Optional[datetime] = Field(default=None, description="Time of the last write (UTC)")
    updated_by: Optional[str] = Field(default=None, description="Subject of the last writer")

    @classmethod
    def empty(cls) -> "ContactInfo":
        return cls()

    @property
    def is_set(self) -> bool:
        return self.updated_at is not None

    def content(self) -> ContactInfoData:
        """The content fields alone, comparable with a snapshot's data."""
        return ContactInfoData.model_validate(self.model_dump(include=set(CONTENT_FIELDS)))


class HistoryAction(str, Enum):
    """How a write changed the singleton: first write creates, later ones update."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"

    @property
    def past_tense(self) -> str:
        return "created" if self is HistoryAction.CREATE else "updated"


class HistorySnapshot(WireModel):
    """One append-only history entry. `id` is the insertion sequence number."""

    id: int
    snapshot_at: datetime
    action: HistoryAction
    actor: str
    data: ContactInfoData


# ══════════════════════════════════════════════════════════════════════════
# Write Payloads
# ══════════════════════════════════════════════════════════════════════════


class _PartialModel(WireModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True
    )


class AddressUpdate(_PartialModel):
    """Partial address. Only sub-fields present in the JSON change."""

    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class BusinessHoursUpdate(_PartialModel):
    monday: Optional[str] = None
    tuesday: Optional[str] = None
    wednesday: Optional[str] = None
    thursday: Optional[str] = None
    friday: Optional[str] = None
    saturday: Optional[str] = None
    sunday: Optional[str] = None


class CallToActionUpdate(_PartialModel):
    title: Optional[str] = None
    subtitle: Optional[str] = None
    button_text: Optional[str] = None


class DisplaySettingsUpdate(_PartialModel):
    show_email: Optional[bool] = None
    show_address: Optional[bool] = None
    show_phone: Optional[bool] = None
    show_business_hours: Optional[bool] = None
    show_social_links: Optional[bool] = None
    show_availability: Optional[bool] = None


class ContactInfoUpdate(_PartialModel):
    """
    Full or partial contact-info payload accepted by the admin write endpoint.

    Omitted keys leave the stored field unchanged; keys sent with a value
    overwrite it (an explicit "" clears a string); keys sent as null reset the
    field to its neutral value. The nested blocks (address, businessHours,
    callToAction, displaySettings) follow the same rules per sub-field.
    Business-rule validation (email shape, URL scheme, enums) happens in the
    store so that it surfaces as a 400 ValidationError rather than a schema
    error.
    """

    email: Optional[str] = None
    alternate_email: Optional[str] = None
    phone: Optional[str] = None
    alternate_phone: Optional[str] = None
    address: Optional[AddressUpdate] = None
    business_hours: Optional[BusinessHoursUpdate] = None
    social_links: Optional[Dict[str, str]] = None
    website: Optional[str] = None
    resume: Optional[str] = None
    portfolio: Optional[str] = None
    preferred_contact_method: Optional[str] = None
    availability: Optional[str] = None
    response_time: Optional[str] = None
    timezone: Optional[str] = None
    languages: Optional[List[Language]] = None
    call_to_action: Optional[CallToActionUpdate] = None
    display_settings: Optional[DisplaySettingsUpdate] = None

    @classmethod
    def clear_all(cls) -> "ContactInfoUpdate":
        """A payload that explicitly resets every field to its neutral value."""
        return cls.model_validate({name: None for name in cls.model_fields})


# ══════════════════════════════════════════════════════════════════════════
# Response Envelopes
# ══════════════════════════════════════════════════════════════════════════


class ContactInfoResponse(WireModel):
    """GET /api/contact-info. `data` is null until the first write."""

    success: bool = True
    data: Optional[ContactInfo] = None


class ContactInfoWriteResponse(WireModel):
    """POST/PUT/DELETE /api/admin/contact-info."""

    success: bool = True
    action: str = Field(description="'created' or 'updated'")
    message: str
    data: ContactInfo


class HistoryResponse(WireModel):
    """GET /api/admin/contact-info/history, newest first."""

    success: bool = True
    data: List[HistorySnapshot] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    Standardized error body produced by the global exception handlers.

    Example:
        {
            "success": false,
            "error": "validation_error",
            "message": "Invalid email format",
            "details": {"field": "email"},
            "request_id": "1f2e3d4c"
        }
    """

    success: bool = False
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """GET /health."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
