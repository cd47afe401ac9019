"""Updates that move an LPA through its lifecycle statuses."""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from dataclasses import dataclass

from lpastore.models import Change, FieldError, Lpa, LpaStatus, UpdateRejected
from lpastore.parser import Parser
from lpastore.validation import check_valid

_EXPECTED_EMPTY = FieldError("/changes", "expected empty")


def _reject(source: str, detail: str) -> None:
    raise UpdateRejected([FieldError(source, detail)])


def _ensure_no_changes(changes: Sequence[Change] | None) -> None:
    if changes:
        raise UpdateRejected([_EXPECTED_EMPTY])


@dataclass(frozen=True)
class DonorWithdrawLpa:
    """The donor withdrawing an LPA that is not yet registered."""

    def apply(self, lpa: Lpa) -> None:
        if lpa.status == LpaStatus.WITHDRAWN:
            _reject("/type", "lpa has already been withdrawn")
        if lpa.status == LpaStatus.REGISTERED:
            _reject("/type", "cannot withdraw a registered lpa")
        if lpa.status == LpaStatus.CANNOT_REGISTER:
            _reject("/type", "cannot withdraw an unregisterable lpa")
        lpa.status = LpaStatus.WITHDRAWN


def validate_donor_withdraw_lpa(changes: Sequence[Change] | None) -> DonorWithdrawLpa:
    _ensure_no_changes(changes)
    return DonorWithdrawLpa()


_OPG_TARGETS = frozenset(
    {
        LpaStatus.CANNOT_REGISTER,
        LpaStatus.CANCELLED,
        LpaStatus.DO_NOT_REGISTER,
        LpaStatus.EXPIRED,
    }
)


@dataclass
class OpgChangeStatus:
    """A change of status made by the office."""

    status: str = ""

    def apply(self, lpa: Lpa) -> None:
        new, current = self.status, lpa.status

        if new not in _OPG_TARGETS:
            _reject(
                "/status",
                "Status to be updated should be cannot register, cancelled, "
                "do not register or expired",
            )
        if new == LpaStatus.CANNOT_REGISTER and current == LpaStatus.REGISTERED:
            _reject(
                "/status", "Lpa status cannot be registered while changing to cannot register"
            )
        if new == LpaStatus.CANNOT_REGISTER and current == LpaStatus.CANCELLED:
            _reject(
                "/status", "Lpa status cannot be cancelled while changing to cannot register"
            )
        if new == LpaStatus.CANCELLED and current != LpaStatus.REGISTERED:
            _reject("/status", "Lpa status has to be registered while changing to cancelled")
        if new == LpaStatus.DO_NOT_REGISTER and current != LpaStatus.STATUTORY_WAITING_PERIOD:
            _reject(
                "/status",
                "Lpa status has to be statutory waiting period while changing to do not register",
            )
        if new == LpaStatus.EXPIRED and current not in (
            LpaStatus.IN_PROGRESS,
            LpaStatus.STATUTORY_WAITING_PERIOD,
            LpaStatus.DO_NOT_REGISTER,
        ):
            _reject(
                "/status",
                "Lpa status has to be in progress, statutory waiting period or "
                "do not register while changing to expired",
            )

        lpa.status = new


def validate_opg_change_status(changes: Sequence[Change], lpa: Lpa) -> OpgChangeStatus:
    """Build an OpgChangeStatus from the changes; raises UpdateRejected on errors."""
    data = OpgChangeStatus(status=lpa.status)
    errors = (
        Parser(changes)
        .field("/status", data, "status", validator=lambda v: check_valid("", v, LpaStatus))
        .consumed()
    )
    if errors:
        raise UpdateRejected(errors)
    return data


@dataclass(frozen=True)
class Register:
    """Registration of an LPA at the end of the statutory waiting period."""

    def apply(self, lpa: Lpa) -> None:
        if lpa.status != LpaStatus.STATUTORY_WAITING_PERIOD:
            _reject("/type", "status must be statutory-waiting-period to register")
        lpa.registration_date = dt.datetime.now(dt.timezone.utc)
        lpa.status = LpaStatus.REGISTERED


def validate_register(changes: Sequence[Change] | None) -> Register:
    _ensure_no_changes(changes)
    return Register()


@dataclass(frozen=True)
class StatutoryWaitingPeriod:
    """Entry into the statutory waiting period once everyone has signed."""

    def apply(self, lpa: Lpa) -> None:
        if lpa.status != LpaStatus.IN_PROGRESS:
            _reject("/type", "status must be in-progress to enter statutory-waiting-period")
        if lpa.signed_at is None:
            _reject("/type", "lpa must be signed")
        if lpa.certificate_provider.signed_at is None:
            _reject("/type", "lpa must have a certificate")
        if any(attorney.signed_at is None for attorney in lpa.attorneys):
            _reject("/type", "lpa must be signed by attorneys")
        if any(
            signatory.signed_at is None
            for corporation in lpa.trust_corporations
            for signatory in corporation.signatories
        ):
            _reject("/type", "lpa must be signed by trust corporations")

        lpa.status = LpaStatus.STATUTORY_WAITING_PERIOD


def validate_statutory_waiting_period(
    changes: Sequence[Change] | None,
) -> StatutoryWaitingPeriod:
    _ensure_no_changes(changes)
    return StatutoryWaitingPeriod()