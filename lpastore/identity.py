"""Confirmation of the donor's or certificate provider's identity."""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from lpastore.models import Change, IdentityCheck, IdentityCheckType, Lpa, UpdateRejected
from lpastore.parser import FieldKind, Parser
from lpastore.validation import check_time, check_valid


class IdentityActor(StrEnum):
    """Whose identity has been checked."""

    DONOR = "Donor"
    CERTIFICATE_PROVIDER = "CertificateProvider"


@dataclass
class IdCheckComplete:
    """A completed identity check for one actor."""

    actor: IdentityActor
    identity_check: IdentityCheck

    def apply(self, lpa: Lpa) -> None:
        if self.actor is IdentityActor.DONOR:
            lpa.donor.identity_check = self.identity_check
        else:
            lpa.certificate_provider.identity_check = self.identity_check


def validate_confirm_identity(
    prefix: str,
    actor: IdentityActor,
    check: IdentityCheck | None,
    changes: Sequence[Change],
) -> IdCheckComplete:
    """Build an IdCheckComplete from changes under prefix; raises UpdateRejected on errors."""
    identity_check = IdentityCheck() if check is None else dataclasses.replace(check)
    result = IdCheckComplete(actor=actor, identity_check=identity_check)

    def parse_check(p: Parser) -> object:
        return (
            p.field(
                "/type",
                identity_check,
                "type",
                validator=lambda v: check_valid("", v, IdentityCheckType),
            )
            .field(
                "/checkedAt",
                identity_check,
                "checked_at",
                FieldKind.TIME,
                validator=lambda v: check_time("", v),
            )
            .consumed()
        )

    errors = Parser(changes).prefix(prefix, parse_check).consumed()
    if errors:
        raise UpdateRejected(errors)
    return result


def validate_donor_confirm_identity(changes: Sequence[Change], lpa: Lpa) -> IdCheckComplete:
    return validate_confirm_identity(
        "/donor/identityCheck", IdentityActor.DONOR, lpa.donor.identity_check, changes
    )


def validate_certificate_provider_confirm_identity(
    changes: Sequence[Change], lpa: Lpa
) -> IdCheckComplete:
    return validate_confirm_identity(
        "/certificateProvider/identityCheck",
        IdentityActor.CERTIFICATE_PROVIDER,
        lpa.certificate_provider.identity_check,
        changes,
    )