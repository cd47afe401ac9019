"""Signing updates: attorneys, the certificate provider and trust corporations."""

from __future__ import annotations

import dataclasses
import datetime as dt
from collections.abc import Iterable
from dataclasses import dataclass, field

from lpastore.models import (
    Address,
    Change,
    Channel,
    FieldError,
    Lang,
    Lpa,
    Signatory,
    UpdateRejected,
)
from lpastore.parser import FieldKind, Parser
from lpastore.validation import check_country, check_required, check_time, check_valid


def _reject(source: str, detail: str) -> None:
    raise UpdateRejected([FieldError(source, detail)])


def _raise_if_any(errors: list[FieldError]) -> None:
    if errors:
        raise UpdateRejected(errors)


def _valid_lang(value: object) -> list[FieldError]:
    return check_valid("", value, Lang)


def _valid_channel(value: object) -> list[FieldError]:
    return check_valid("", value, Channel)


def _valid_time(value: dt.datetime | None) -> list[FieldError]:
    return check_time("", value)


@dataclass
class AttorneySign:
    """An attorney signing the LPA."""

    index: int | None = None
    mobile: str = ""
    signed_at: dt.datetime | None = None
    contact_language_preference: str = ""
    channel: str = ""
    email: str = ""

    def apply(self, lpa: Lpa) -> None:
        if self.index is None:
            raise ValueError("no attorney selected")
        attorney = lpa.attorneys[self.index]
        if attorney.signed_at is not None:
            _reject("/type", "attorney cannot sign again")

        attorney.mobile = self.mobile
        attorney.signed_at = self.signed_at
        attorney.contact_language_preference = self.contact_language_preference
        attorney.channel = self.channel
        attorney.email = self.email


def validate_attorney_sign(changes: Iterable[Change], lpa: Lpa) -> AttorneySign:
    """Build an AttorneySign from the changes; raises UpdateRejected on errors."""
    data = AttorneySign()

    def attorney(i: int, p: Parser) -> list[FieldError]:
        if data.index is not None and data.index != i:
            return p.out_of_range()
        if not 0 <= i < len(lpa.attorneys):
            return p.out_of_range()

        existing = lpa.attorneys[i]
        data.index = i
        data.mobile = existing.mobile
        data.contact_language_preference = existing.contact_language_preference
        data.channel = existing.channel
        data.email = existing.email
        data.signed_at = existing.signed_at

        return (
            p.field("/mobile", data, "mobile")
            .field("/signedAt", data, "signed_at", FieldKind.TIME, validator=_valid_time)
            .field(
                "/contactLanguagePreference",
                data,
                "contact_language_preference",
                validator=_valid_lang,
            )
            .field("/channel", data, "channel", optional=True, validator=_valid_channel)
            .field("/email", data, "email", optional=True)
            .consumed()
        )

    errors = (
        Parser(changes)
        .prefix("/attorneys", lambda p: p.each(attorney).consumed())
        .consumed()
    )
    _raise_if_any(errors)
    return data


@dataclass
class CertificateProviderSign:
    """The certificate provider signing the certificate."""

    address: Address = field(default_factory=Address)
    signed_at: dt.datetime | None = None
    contact_language_preference: str = ""
    email: str = ""
    channel: str = ""

    def apply(self, lpa: Lpa) -> None:
        provider = lpa.certificate_provider
        if provider.signed_at is not None:
            _reject("/type", "certificate provider cannot sign again")

        provider.address = dataclasses.replace(self.address)
        provider.signed_at = self.signed_at
        provider.contact_language_preference = self.contact_language_preference
        provider.email = self.email
        provider.channel = self.channel


def validate_certificate_provider_sign(
    changes: Iterable[Change], lpa: Lpa
) -> CertificateProviderSign:
    """Build a CertificateProviderSign from the changes; raises UpdateRejected on errors."""
    existing = lpa.certificate_provider
    data = CertificateProviderSign(
        address=dataclasses.replace(existing.address),
        signed_at=existing.signed_at,
        contact_language_preference=existing.contact_language_preference,
        email=existing.email,
        channel=existing.channel,
    )
    address = data.address

    def parse_address(p: Parser) -> list[FieldError]:
        return (
            p.field("/line1", address, "line1")
            .field("/line2", address, "line2", optional=True)
            .field("/line3", address, "line3", optional=True)
            .field("/town", address, "town")
            .field("/postcode", address, "postcode", optional=True)
            .field("/country", address, "country", validator=lambda v: check_country("", v))
            .consumed()
        )

    errors = (
        Parser(changes)
        .prefix("/certificateProvider/address", parse_address, optional=True)
        .field(
            "/certificateProvider/signedAt",
            data,
            "signed_at",
            FieldKind.TIME,
            validator=_valid_time,
        )
        .field(
            "/certificateProvider/contactLanguagePreference",
            data,
            "contact_language_preference",
            validator=_valid_lang,
        )
        .field(
            "/certificateProvider/email",
            data,
            "email",
            optional=True,
            validator=lambda v: check_required("", v),
        )
        .field(
            "/certificateProvider/channel",
            data,
            "channel",
            optional=True,
            validator=_valid_channel,
        )
        .consumed()
    )
    _raise_if_any(errors)
    return data


@dataclass
class TrustCorporationSign:
    """A trust corporation signing the LPA through one or two signatories."""

    channel: str = ""
    contact_language_preference: str = ""
    email: str = ""
    index: int | None = None
    mobile: str = ""
    signatories: list[Signatory] = field(default_factory=lambda: [Signatory(), Signatory()])

    def apply(self, lpa: Lpa) -> None:
        if self.index is None:
            raise ValueError("no trust corporation selected")
        corporation = lpa.trust_corporations[self.index]
        if corporation.signatories and corporation.signatories[0].signed_at is not None:
            _reject("/type", "trust corporation cannot sign again")

        corporation.mobile = self.mobile
        corporation.contact_language_preference = self.contact_language_preference
        corporation.channel = self.channel
        corporation.email = self.email

        first, second = self.signatories[0], self.signatories[1]
        if second.is_zero():
            corporation.signatories = [dataclasses.replace(first)]
        else:
            corporation.signatories = [dataclasses.replace(first), dataclasses.replace(second)]


def validate_trust_corporation_sign(
    changes: Iterable[Change], lpa: Lpa
) -> TrustCorporationSign:
    """Build a TrustCorporationSign from the changes; raises UpdateRejected on errors."""
    data = TrustCorporationSign()

    def signatory(i: int, p: Parser) -> list[FieldError]:
        if not 0 <= i <= 1:
            return p.out_of_range()
        target = data.signatories[i]
        return (
            p.field("/firstNames", target, "first_names")
            .field("/lastName", target, "last_name")
            .field("/professionalTitle", target, "professional_title")
            .field("/signedAt", target, "signed_at", FieldKind.TIME)
            .consumed()
        )

    def corporation(i: int, p: Parser) -> list[FieldError]:
        if data.index is not None and data.index != i:
            return p.out_of_range()
        if not 0 <= i < len(lpa.trust_corporations):
            return p.out_of_range()

        existing = lpa.trust_corporations[i]
        data.index = i
        data.email = existing.email
        data.channel = existing.channel

        return (
            p.field("/mobile", data, "mobile")
            .field(
                "/contactLanguagePreference",
                data,
                "contact_language_preference",
                validator=_valid_lang,
            )
            .field("/email", data, "email", optional=True)
            .field("/channel", data, "channel", optional=True, validator=_valid_channel)
            .prefix("/signatories", lambda s: s.each(signatory, 0).consumed())
            .consumed()
        )

    errors = (
        Parser(changes)
        .prefix("/trustCorporations", lambda p: p.each(corporation).consumed())
        .consumed()
    )
    _raise_if_any(errors)
    return data