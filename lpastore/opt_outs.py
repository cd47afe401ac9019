"""Opting out of an LPA: attorneys, trust corporations and the certificate provider."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from lpastore.models import (
    AttorneyStatus,
    Change,
    FieldError,
    Lpa,
    LpaStatus,
    Update,
    UpdateRejected,
    author_uid,
)
from lpastore.validation import check_uuid

_EXPECTED_EMPTY = FieldError("/changes", "expected empty")


def _reject(source: str, detail: str) -> None:
    raise UpdateRejected([FieldError(source, detail)])


def _author_of(update: Update) -> str:
    if update.changes:
        raise UpdateRejected([_EXPECTED_EMPTY])
    uid = author_uid(update.author)
    errors = check_uuid("/author", uid)
    if errors:
        raise UpdateRejected(errors)
    return uid


@dataclass(frozen=True)
class AttorneyOptOut:
    """An attorney declining their appointment before signing."""

    attorney_uid: str = ""

    def apply(self, lpa: Lpa) -> None:
        for attorney in lpa.attorneys:
            if attorney.uid == self.attorney_uid:
                if attorney.signed_at is not None:
                    _reject("/type", "attorney cannot opt out after signing")
                attorney.status = AttorneyStatus.REMOVED
                return
        _reject("/type", "attorney not found")


def validate_attorney_opt_out(update: Update) -> AttorneyOptOut:
    """The opt-out for the update's author; raises UpdateRejected when invalid."""
    return AttorneyOptOut(attorney_uid=_author_of(update))


@dataclass(frozen=True)
class CertificateProviderOptOut:
    """The certificate provider declining to provide a certificate."""

    def apply(self, lpa: Lpa) -> None:
        if lpa.certificate_provider.signed_at is not None:
            _reject("/type", "certificate provider cannot opt out after providing certificate")
        lpa.status = LpaStatus.CANNOT_REGISTER


def validate_certificate_provider_opt_out(changes: Sequence[Change]) -> CertificateProviderOptOut:
    if changes:
        raise UpdateRejected([_EXPECTED_EMPTY])
    return CertificateProviderOptOut()


@dataclass(frozen=True)
class TrustCorporationOptOut:
    """A trust corporation declining its appointment before signing."""

    trust_corporation_uid: str = ""

    def apply(self, lpa: Lpa) -> None:
        for corporation in lpa.trust_corporations:
            if corporation.uid == self.trust_corporation_uid:
                signatories = corporation.signatories
                if signatories and signatories[0].signed_at is not None:
                    _reject("/type", "trust corporation cannot opt out after signing")
                corporation.status = AttorneyStatus.REMOVED
                return
        _reject("/type", "trust corporation not found")


def validate_trust_corporation_opt_out(update: Update) -> TrustCorporationOptOut:
    """The opt-out for the update's author; raises UpdateRejected when invalid."""
    return TrustCorporationOptOut(trust_corporation_uid=_author_of(update))