"""
Portfolio Backend — Contact Info Validation & Merge
=====================================================

What:  The business rules for a contact-info write payload, and the one
       function that merges a payload over the current record.
Who:   Called by ContactInfoStore.upsert() before and inside the write
       critical section.

Merge policy ("an explicit value always overwrites"):
    key omitted          → stored value preserved
    key with a value     → overwrites (an explicit "" or {} included)
    key with null        → reset to the neutral value
    nested blocks        → address, businessHours, callToAction and
                           displaySettings merge sub-field by sub-field;
                           the block itself as null resets all of it
    socialLinks          → replaced wholesale
    languages            → replaced wholesale
"""

import re
from typing import Dict, List, Tuple

from pydantic import BaseModel

from portfolio.exceptions import ValidationError
from portfolio.schemas.contact_info import (
    AVAILABILITY_STATUSES,
    CONTACT_METHODS,
    ContactInfoData,
    ContactInfoUpdate,
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[\d\s\-+()]+$")
URL_SCHEMES = ("http://", "https://")
NESTED_BLOCKS = frozenset({"address", "business_hours", "call_to_action", "display_settings"})


def _is_url(value: str) -> bool:
    return value.lower().startswith(URL_SCHEMES)


def _normalize_social_links(links: Dict[str, str], errors: List[Tuple[str, str]]) -> Dict[str, str]:
    normalized: Dict[str, str] = {}
    for provider, url in links.items():
        key = provider.strip().lower()
        url = url.strip()
        if not key:
            errors.append(("socialLinks", "Social link provider names must not be empty"))
            continue
        if key in normalized:
            errors.append(("socialLinks", f"Duplicate social link provider '{key}'"))
            continue
        # An empty URL leaves the provider listed but unset
        if url and not _is_url(url):
            errors.append(
                ("socialLinks", f"Social link '{key}' must start with http:// or https://")
            )
        normalized[key] = url
    return normalized


def validate_update(update: ContactInfoUpdate) -> ContactInfoUpdate:
    """
    Check a write payload against the contact-info rules.

    Returns a normalized copy (emails and enums lowercased, provider keys
    lowercased) that keeps the same set of provided fields. Every problem is
    collected so the client can fix them in one round trip.

    Raises:
        ValidationError: at least one rule failed. `field` names the first
                         offending field, `errors` lists all messages.
    """
    errors: List[Tuple[str, str]] = []
    changes: Dict[str, object] = {}

    for name, label in (("email", "email"), ("alternate_email", "alternateEmail")):
        value = getattr(update, name)
        if value:
            value = value.lower()
            if not EMAIL_PATTERN.match(value):
                errors.append((label, "Invalid email format"))
            changes[name] = value

    for name, label in (("phone", "phone"), ("alternate_phone", "alternatePhone")):
        value = getattr(update, name)
        if value and not PHONE_PATTERN.match(value):
            errors.append((label, "Invalid phone number format"))

    for name, label in (("website", "Website"), ("resume", "Resume"), ("portfolio", "Portfolio")):
        value = getattr(update, name)
        if value and not _is_url(value):
            errors.append((name, f"{label} must start with http:// or https://"))

    for name, label, allowed in (
        ("preferred_contact_method", "preferredContactMethod", CONTACT_METHODS),
        ("availability", "availability", AVAILABILITY_STATUSES),
    ):
        value = getattr(update, name)
        if value is not None:
            value = value.lower()
            if value not in allowed:
                errors.append((label, f"{label} must be one of: {', '.join(allowed)}"))
            changes[name] = value

    if update.social_links is not None:
        changes["social_links"] = _normalize_social_links(update.social_links, errors)

    if errors:
        raise ValidationError(
            message=errors[0][1],
            field=errors[0][0],
            errors=[message for _, message in errors],
        )

    # Only provided keys are in `changes`, so omitted keys stay omitted
    return update.model_copy(update=changes)


def _merge_block(current: BaseModel, update: BaseModel) -> dict:
    """Merge a nested block sub-field by sub-field; null resets a sub-field."""
    neutral = type(current)().model_dump()
    merged = current.model_dump()
    for name in update.model_fields_set:
        value = getattr(update, name)
        merged[name] = neutral[name] if value is None else value
    return merged


def merge_contact_info(current: ContactInfoData, update: ContactInfoUpdate) -> ContactInfoData:
    """
    Merge a (validated) partial payload over the current content.

    `current` is the stored record's content, or `ContactInfoData()` when no
    record exists yet, so a first write fills omitted fields with neutral
    values. Fields are told apart by `update.model_fields_set`: a key the
    client never sent is absent from it even though its attribute is None.
    """
    neutral = ContactInfoData().model_dump()
    merged = current.model_dump()

    for name in update.model_fields_set:
        value = getattr(update, name)
        if value is None:
            merged[name] = neutral[name]
        elif name in NESTED_BLOCKS:
            merged[name] = _merge_block(getattr(current, name), value)
        elif name == "social_links":
            merged[name] = dict(value)
        elif name == "languages":
            merged[name] = [language.model_dump() for language in value]
        else:
            merged[name] = value

    return ContactInfoData(**merged)
