"""Selection of the validator for an update by its type."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from lpastore.correction import validate_correction
from lpastore.identity import (
    validate_certificate_provider_confirm_identity,
    validate_donor_confirm_identity,
)
from lpastore.models import FieldError, Lpa, Update, UpdateRejected
from lpastore.opt_outs import (
    validate_attorney_opt_out,
    validate_certificate_provider_opt_out,
    validate_trust_corporation_opt_out,
)
from lpastore.signing import (
    validate_attorney_sign,
    validate_certificate_provider_sign,
    validate_trust_corporation_sign,
)
from lpastore.status import (
    validate_donor_withdraw_lpa,
    validate_opg_change_status,
    validate_register,
    validate_statutory_waiting_period,
)


@runtime_checkable
class Applyable(Protocol):
    """A validated update that can be applied to an LPA."""

    def apply(self, lpa: Lpa) -> None:
        """Change the LPA; raises UpdateRejected when the update cannot be applied."""
        ...


_Validator = Callable[[Update, Lpa], Applyable]

_VALIDATORS: dict[str, _Validator] = {
    "ATTORNEY_SIGN": lambda u, lpa: validate_attorney_sign(u.changes, lpa),
    "CERTIFICATE_PROVIDER_OPT_OUT": lambda u, lpa: validate_certificate_provider_opt_out(
        u.changes
    ),
    "CERTIFICATE_PROVIDER_SIGN": lambda u, lpa: validate_certificate_provider_sign(
        u.changes, lpa
    ),
    "PERFECT": lambda u, lpa: validate_statutory_waiting_period(u.changes),
    "STATUTORY_WAITING_PERIOD": lambda u, lpa: validate_statutory_waiting_period(u.changes),
    "REGISTER": lambda u, lpa: validate_register(u.changes),
    "OPG_STATUS_CHANGE": lambda u, lpa: validate_opg_change_status(u.changes, lpa),
    "TRUST_CORPORATION_SIGN": lambda u, lpa: validate_trust_corporation_sign(u.changes, lpa),
    "DONOR_CONFIRM_IDENTITY": lambda u, lpa: validate_donor_confirm_identity(u.changes, lpa),
    "CERTIFICATE_PROVIDER_CONFIRM_IDENTITY": lambda u, lpa: (
        validate_certificate_provider_confirm_identity(u.changes, lpa)
    ),
    "DONOR_WITHDRAW_LPA": lambda u, lpa: validate_donor_withdraw_lpa(u.changes),
    "ATTORNEY_OPT_OUT": lambda u, lpa: validate_attorney_opt_out(u),
    "TRUST_CORPORATION_OPT_OUT": lambda u, lpa: validate_trust_corporation_opt_out(u),
    "CORRECTION": lambda u, lpa: validate_correction(u.changes, lpa),
}


def validate_update(update: Update, lpa: Lpa) -> Applyable:
    """Validate the update against the LPA; raises UpdateRejected when invalid."""
    validator = _VALIDATORS.get(update.type)
    if validator is None:
        raise UpdateRejected([FieldError("/type", "invalid value")])
    return validator(update, lpa)