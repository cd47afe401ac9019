"""Data model of a lasting power of attorney and of the updates made to it."""

from __future__ import annotations

import dataclasses
import datetime as dt
import json
import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Lang(StrEnum):
    """Language a person prefers to be contacted in."""

    EN = "en"
    CY = "cy"


class Channel(StrEnum):
    """How a person interacts with the service."""

    ONLINE = "online"
    PAPER = "paper"


class LpaStatus(StrEnum):
    """Lifecycle status of an LPA."""

    IN_PROGRESS = "in-progress"
    STATUTORY_WAITING_PERIOD = "statutory-waiting-period"
    REGISTERED = "registered"
    CANNOT_REGISTER = "cannot-register"
    WITHDRAWN = "withdrawn"
    CANCELLED = "cancelled"
    DO_NOT_REGISTER = "do-not-register"
    EXPIRED = "expired"


class AttorneyStatus(StrEnum):
    """Status of an attorney or trust corporation on an LPA."""

    ACTIVE = "active"
    REPLACEMENT = "replacement"
    REMOVED = "removed"


class IdentityCheckType(StrEnum):
    """Ways in which a person's identity can be confirmed."""

    ONE_LOGIN = "one-login"
    OPG_PAPER_ID = "opg-paper-id"


@dataclass(frozen=True)
class FieldError:
    """A problem with one part of a request, located by a JSON pointer."""

    source: str
    detail: str


class UpdateRejected(Exception):
    """Raised when an update cannot be accepted; carries the field errors."""

    def __init__(self, errors: list[FieldError] | tuple[FieldError, ...]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.source}: {e.detail}" for e in self.errors))


_DATE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


@dataclass(frozen=True)
class Date:
    """A calendar date without a time; the empty date is the zero value."""

    value: dt.date | None = None

    @classmethod
    def parse(cls, text: str) -> Date:
        """Parse a YYYY-MM-DD date; the empty string gives the zero date."""
        if text == "":
            return cls()
        if not _DATE.fullmatch(text):
            raise ValueError(f"invalid date: {text!r}")
        try:
            return cls(dt.date.fromisoformat(text))
        except ValueError as exc:
            raise ValueError(f"invalid date: {text!r}") from exc

    def is_zero(self) -> bool:
        return self.value is None

    def isoformat(self) -> str:
        return "" if self.value is None else self.value.isoformat()


@dataclass
class Address:
    line1: str = ""
    line2: str = ""
    line3: str = ""
    town: str = ""
    postcode: str = ""
    country: str = ""


@dataclass
class IdentityCheck:
    type: str = ""
    checked_at: dt.datetime | None = None


@dataclass
class Donor:
    uid: str = ""
    first_names: str = ""
    last_name: str = ""
    other_names_known_by: str = ""
    date_of_birth: Date = field(default_factory=Date)
    address: Address = field(default_factory=Address)
    email: str = ""
    contact_language_preference: str = ""
    identity_check: IdentityCheck | None = None


@dataclass
class CertificateProvider:
    uid: str = ""
    first_names: str = ""
    last_name: str = ""
    address: Address = field(default_factory=Address)
    channel: str = ""
    email: str = ""
    phone: str = ""
    signed_at: dt.datetime | None = None
    contact_language_preference: str = ""
    identity_check: IdentityCheck | None = None


@dataclass
class Attorney:
    uid: str = ""
    first_names: str = ""
    last_name: str = ""
    date_of_birth: Date = field(default_factory=Date)
    address: Address = field(default_factory=Address)
    email: str = ""
    channel: str = ""
    status: str = ""
    appointment_type: str = ""
    mobile: str = ""
    signed_at: dt.datetime | None = None
    contact_language_preference: str = ""


@dataclass
class Signatory:
    first_names: str = ""
    last_name: str = ""
    professional_title: str = ""
    signed_at: dt.datetime | None = None

    def is_zero(self) -> bool:
        return (
            not self.first_names
            and not self.last_name
            and not self.professional_title
            and self.signed_at is None
        )


@dataclass
class TrustCorporation:
    uid: str = ""
    name: str = ""
    company_number: str = ""
    email: str = ""
    address: Address = field(default_factory=Address)
    channel: str = ""
    status: str = ""
    appointment_type: str = ""
    mobile: str = ""
    signatories: list[Signatory] = field(default_factory=list)
    contact_language_preference: str = ""


@dataclass
class Lpa:
    """A lasting power of attorney as held in the store."""

    uid: str = ""
    status: str = ""
    registration_date: dt.datetime | None = None
    updated_at: dt.datetime | None = None
    lpa_type: str = ""
    channel: str = ""
    donor: Donor = field(default_factory=Donor)
    attorneys: list[Attorney] = field(default_factory=list)
    trust_corporations: list[TrustCorporation] = field(default_factory=list)
    certificate_provider: CertificateProvider = field(default_factory=CertificateProvider)
    life_sustaining_treatment_option: str = ""
    how_attorneys_make_decisions: str = ""
    signed_at: dt.datetime | None = None
    witnessed_by_certificate_provider_at: dt.datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation with camelCase keys; empty values are left out."""
        return _encode(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _is_empty(value: Any) -> bool:
    if value is None or value == "" or value == []:
        return True
    return isinstance(value, Date) and value.is_zero()


def _encode(value: Any) -> Any:
    if isinstance(value, Date):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            _camel(f.name): _encode(item)
            for f in dataclasses.fields(value)
            if not _is_empty(item := getattr(value, f.name))
        }
    if isinstance(value, dt.datetime):
        return format_time(value)
    if isinstance(value, list):
        return [_encode(item) for item in value]
    if isinstance(value, StrEnum):
        return value.value
    return value


@dataclass(frozen=True)
class Change:
    """One field change: the JSON pointer key and decoded old and new values."""

    key: str
    old: Any = None
    new: Any = None

    @classmethod
    def from_dict(cls, data: Any) -> Change:
        if not isinstance(data, dict):
            raise ValueError("change must be a JSON object")
        key = data.get("key") or ""
        if not isinstance(key, str):
            raise ValueError("change key must be a string")
        return cls(key=key, old=data.get("old"), new=data.get("new"))


@dataclass
class Update:
    """A requested update to an LPA."""

    type: str = ""
    changes: list[Change] = field(default_factory=list)
    author: str = ""
    id: str = ""
    uid: str = ""
    applied: str = ""

    @classmethod
    def from_json(cls, text: str | bytes) -> Update:
        """Decode an update from a JSON document; raises ValueError when malformed."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("update must be a JSON object")
        strings: dict[str, str] = {}
        for name in ("type", "author", "id", "uid", "applied"):
            value = data.get(name)
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise ValueError(f"update {name} must be a string")
            strings[name] = value
        raw_changes = data.get("changes")
        if raw_changes is None:
            raw_changes = []
        if not isinstance(raw_changes, list):
            raise ValueError("update changes must be a list")
        return cls(changes=[Change.from_dict(item) for item in raw_changes], **strings)


def author_uid(urn: str) -> str:
    """The user identifier at the end of an author URN, or "" if there is none."""
    if not urn.lower().startswith("urn:"):
        return ""
    _, sep, uid = urn.rpartition(":users:")
    return uid if sep else ""


def format_time(value: dt.datetime) -> str:
    """Format as RFC 3339 with fractional seconds trimmed of trailing zeros."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset() or dt.timedelta(0)
    if offset == dt.timedelta(0):
        return text + "Z"
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{mins:02d}"


_TIME = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?(Z|[+-]\d{2}:\d{2})",
    re.ASCII,
)


def parse_time(text: str) -> dt.datetime:
    """Parse an RFC 3339 timestamp; precision beyond microseconds is dropped."""
    match = _TIME.fullmatch(text)
    if not match:
        raise ValueError(f"invalid RFC 3339 time: {text!r}")
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction, zone = match.group(7), match.group(8)
    micro = int((fraction or "").ljust(6, "0")[:6])
    try:
        if zone == "Z":
            tz = dt.timezone.utc
        else:
            sign = 1 if zone[0] == "+" else -1
            delta = dt.timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
            tz = dt.timezone(sign * delta)
        return dt.datetime(year, month, day, hour, minute, second, micro, tzinfo=tz)
    except ValueError as exc:
        raise ValueError(f"invalid RFC 3339 time: {text!r}") from exc