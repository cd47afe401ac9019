"""Corrections to the donor's details and the LPA's signing date."""

from __future__ import annotations

import dataclasses
import datetime as dt
from collections.abc import Sequence
from dataclasses import dataclass, field

from lpastore.models import (
    Address,
    Change,
    Channel,
    Date,
    FieldError,
    Lpa,
    LpaStatus,
    UpdateRejected,
)
from lpastore.parser import FieldKind, Parser
from lpastore.validation import check_country, check_date, check_required, check_time


@dataclass
class Correction:
    """Corrected donor details and LPA signing date."""

    donor_first_names: str = ""
    donor_last_name: str = ""
    donor_other_names: str = ""
    donor_dob: Date = field(default_factory=Date)
    donor_address: Address = field(default_factory=Address)
    donor_email: str = ""
    lpa_signed_at: dt.datetime | None = None

    def apply(self, lpa: Lpa) -> None:
        if self.lpa_signed_at is not None and lpa.channel == Channel.ONLINE:
            raise UpdateRejected(
                [
                    FieldError(
                        "/signedAt", "LPA Signed on date cannot be changed for online LPAs"
                    )
                ]
            )
        if lpa.status == LpaStatus.REGISTERED:
            raise UpdateRejected(
                [FieldError("/type", "Cannot make corrections to a Registered LPA")]
            )

        donor = lpa.donor
        donor.first_names = self.donor_first_names
        donor.last_name = self.donor_last_name
        donor.other_names_known_by = self.donor_other_names
        donor.date_of_birth = self.donor_dob
        donor.address = dataclasses.replace(self.donor_address)
        donor.email = self.donor_email
        lpa.signed_at = self.lpa_signed_at


def validate_correction(changes: Sequence[Change], lpa: Lpa) -> Correction:
    """Build a Correction from the changes; raises UpdateRejected on errors."""
    donor = lpa.donor
    data = Correction(
        donor_first_names=donor.first_names,
        donor_last_name=donor.last_name,
        donor_other_names=donor.other_names_known_by,
        donor_dob=donor.date_of_birth,
        donor_address=dataclasses.replace(donor.address),
        donor_email=donor.email,
        lpa_signed_at=lpa.signed_at,
    )
    address = data.donor_address

    def parse_address(p: Parser) -> list[FieldError]:
        return (
            p.field("/line1", address, "line1", optional=True)
            .field("/line2", address, "line2", optional=True)
            .field("/line3", address, "line3", optional=True)
            .field("/town", address, "town", optional=True)
            .field("/postcode", address, "postcode", optional=True)
            .field(
                "/country",
                address,
                "country",
                optional=True,
                validator=lambda v: check_country("", v),
            )
            .consumed()
        )

    errors = (
        Parser(changes)
        .prefix("/donor/address", parse_address, optional=True)
        .field(
            "/donor/firstNames",
            data,
            "donor_first_names",
            optional=True,
            validator=lambda v: check_required("", v),
        )
        .field(
            "/donor/lastName",
            data,
            "donor_last_name",
            optional=True,
            validator=lambda v: check_required("", v),
        )
        .field("/donor/otherNamesKnownBy", data, "donor_other_names", optional=True)
        .field("/donor/email", data, "donor_email", optional=True)
        .field(
            "/donor/dateOfBirth",
            data,
            "donor_dob",
            FieldKind.DATE,
            optional=True,
            validator=lambda v: check_date("", v),
        )
        .field(
            "/signedAt",
            data,
            "lpa_signed_at",
            FieldKind.TIME,
            optional=True,
            validator=lambda v: check_time("", v),
        )
        .consumed()
    )
    if errors:
        raise UpdateRejected(errors)
    return data