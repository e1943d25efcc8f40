"""Identity normalization for phone numbers and email addresses.

Both the server-side verifier and the client-side session cache compare
identities through these functions, so a value proven once always compares
equal on later visits.

Phone numbers are reduced to their digits only. No country-code
canonicalization is applied: "+1 555-123-4567" becomes "15551234567" while
"(555) 123-4567" becomes "5551234567", and the two do not match.
"""

import re

from guestpass.models.access import NormalizedIdentity
from guestpass.models.enums import IdentityKind

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# E.164 allows at most 15 digits
MAX_PHONE_DIGITS = 15


def normalize_phone(phone: str) -> str:
    """Strip every non-digit character."""
    return re.sub(r"\D", "", phone)


def normalize_email(email: str) -> str:
    """Trim surrounding whitespace and lowercase."""
    return email.strip().lower()


def classify_identity(value: str) -> IdentityKind:
    """Classify a submitted string as an email or a phone number."""
    if EMAIL_PATTERN.match(value.strip()):
        return IdentityKind.EMAIL
    return IdentityKind.PHONE


def normalize_identity(value: str) -> NormalizedIdentity:
    """Normalize a submitted identity string according to its detected kind."""
    kind = classify_identity(value)
    if kind == IdentityKind.EMAIL:
        return NormalizedIdentity(kind=kind, value=normalize_email(value))
    return NormalizedIdentity(kind=kind, value=normalize_phone(value))


def is_valid_identity(identity: NormalizedIdentity) -> bool:
    """Whether a normalized identity can be stored or compared.

    A phone submission without any digits (or with more than E.164 allows)
    cannot match anything and is rejected up front.
    """
    if identity.kind == IdentityKind.EMAIL:
        return bool(identity.value)
    return 0 < len(identity.value) <= MAX_PHONE_DIGITS


def stored_identity(
    phone: str | None, email: str | None, kind: IdentityKind
) -> str | None:
    """Return the stored value of ``kind`` in normalized form, if populated."""
    if kind == IdentityKind.EMAIL:
        return normalize_email(email) if email else None
    normalized = normalize_phone(phone) if phone else ""
    return normalized or None


def identity_matches(
    submitted: NormalizedIdentity, phone: str | None, email: str | None
) -> bool:
    """Match a normalized submission against a guest's stored identity.

    Succeeds only when the submission's kind has a populated stored field
    and the normalized values are equal.
    """
    stored = stored_identity(phone, email, submitted.kind)
    return stored is not None and stored == submitted.value
