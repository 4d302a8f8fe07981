# Overview: Service-layer operations for store owners: setup wizard, profile, digest preferences.

"""
Setup wizard: BUSINESS_INFO -> BANK_INFO -> DONE.

Every committed owner write sends owner_written so the public profile
follows. Bank details arrive either nested under `bankDetails` /
`bank_details` or as flat fields; both shapes are accepted.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Owner
from ..models.owners import (
    BANK_FIELDS,
    REPORT_FREQUENCIES,
    SETUP_BANK_INFO,
    SETUP_DONE,
)
from ..signals import owner_written
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_owner_profile,
    require_text,
    validate_email,
    validate_payload,
)
from .concurrency import run_with_retry


BUSINESS_POLICY = ModelValidationPolicy(
    writable_fields={"display_name", "business_type", "bio", "logo_url", "brand_color"},
    required_on_create={"display_name"},
)

BANK_POLICY = ModelValidationPolicy(
    writable_fields=set(BANK_FIELDS),
    required_on_create={"bank_name", "account_holder", "account_number"},
)

PROFILE_POLICY = ModelValidationPolicy(
    writable_fields=BUSINESS_POLICY.writable_fields | BANK_POLICY.writable_fields,
)

_CAMEL_BANK_KEYS = {
    "bankName": "bank_name",
    "accountHolder": "account_holder",
    "accountNumber": "account_number",
    "branchCode": "branch_code",
    "swiftCode": "swift_code",
    "paymentEmail": "payment_email",
}

_CAMEL_BUSINESS_KEYS = {
    "businessName": "display_name",
    "businessType": "business_type",
    "logoUrl": "logo_url",
    "primaryColor": "brand_color",
}


def normalize_bank_details(data: dict) -> dict:
    """Flatten nested/camelCase bank payloads into the six snake_case fields."""
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    raw = data.get("bankDetails") or data.get("bank_details") or data
    if not isinstance(raw, dict):
        raise ValidationError("bank_details must be an object")
    normalized = {}
    for key, value in raw.items():
        key = _CAMEL_BANK_KEYS.get(key, key)
        if key in BANK_FIELDS:
            normalized[key] = "" if value is None else str(value).strip()
    return normalized


def normalize_business_info(data: dict) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return {_CAMEL_BUSINESS_KEYS.get(k, k): v for k, v in data.items()}


def _save(owner: Owner, patch: dict, **state) -> Owner:
    def _op():
        for key, value in patch.items():
            setattr(owner, key, value)
        for key, value in state.items():
            setattr(owner, key, value)
        db.session.commit()
        return owner

    run_with_retry(_op)
    owner_written.send(owner)
    return owner


def save_business_info(owner: Owner, data: dict) -> Owner:
    """Setup step 1: display name required; advances the wizard to BANK_INFO."""
    patch = validate_payload(model=Owner, payload=normalize_business_info(data), policy=BUSINESS_POLICY, partial=False)
    enforce_rules_owner_profile(patch)
    state = {}
    if owner.setup_step != SETUP_DONE:
        state["setup_step"] = SETUP_BANK_INFO
    return _save(owner, patch, **state)


def save_bank_details(owner: Owner, data: dict) -> Owner:
    """Setup step 2: bank name, holder and account number required; finishes setup."""
    if not (owner.display_name or "").strip():
        raise ValidationError("Complete your business info first")
    fields = normalize_bank_details(data)
    require_text(fields, *sorted(BANK_POLICY.required_on_create))
    patch = validate_payload(model=Owner, payload=fields, policy=BANK_POLICY, partial=True)
    enforce_rules_owner_profile(patch)
    return _save(owner, patch, setup_step=SETUP_DONE, is_registered=True)


def update_profile(owner: Owner, data: dict) -> Owner:
    """Later edits from the dashboard; any allow-listed field, bank fields may be cleared."""
    data = normalize_business_info(data)
    if "bankDetails" in data or "bank_details" in data:
        bank = normalize_bank_details(data)
        data = {k: v for k, v in data.items() if k not in ("bankDetails", "bank_details")}
        data.update(bank)
    else:
        data = {_CAMEL_BANK_KEYS.get(k, k): v for k, v in data.items()}

    patch = validate_payload(model=Owner, payload=data, policy=PROFILE_POLICY, partial=True)
    if "display_name" in patch and not patch["display_name"]:
        raise ValidationError("display_name cannot be blank")
    enforce_rules_owner_profile(patch)
    return _save(owner, patch)


def set_logo(owner: Owner, logo_url: str) -> Owner:
    return _save(owner, {"logo_url": logo_url})


def get_email_settings(owner: Owner) -> dict:
    return owner.email_settings()


def update_email_settings(owner: Owner, data: dict) -> dict:
    """
    frequency in {daily, weekly, off}; recipient defaults to the account email.
    Enabling with frequency "off" is rejected.
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")

    enabled = data.get("enabled", owner.email_reports_enabled)
    if not isinstance(enabled, bool):
        raise ValidationError("enabled must be true or false")

    frequency = str(data.get("frequency", owner.email_report_frequency) or "").strip().lower()
    if frequency not in REPORT_FREQUENCIES:
        raise ValidationError(f"frequency must be one of {', '.join(REPORT_FREQUENCIES)}")
    if enabled and frequency == "off":
        raise ValidationError("Choose daily or weekly to enable email reports")

    recipient = data.get("recipient", owner.email_report_recipient)
    recipient = validate_email(recipient, "recipient") if recipient else owner.email

    _save(owner, {}, email_reports_enabled=enabled, email_report_frequency=frequency, email_report_recipient=recipient)
    return owner.email_settings()
