import datetime as dt
from collections import Counter

import pytest

from lpastore.identity import (
    IdCheckComplete,
    IdentityActor,
    validate_certificate_provider_confirm_identity,
    validate_confirm_identity,
    validate_donor_confirm_identity,
)
from lpastore.models import (
    Change,
    Donor,
    FieldError,
    IdentityCheck,
    IdentityCheckType,
    Lpa,
    UpdateRejected,
    format_time,
)


def _now():
    return dt.datetime.now(dt.timezone.utc)


def test_confirm_identity_donor():
    today = _now()
    changes = [
        Change(key="/donor/identityCheck/checkedAt", old=None, new=format_time(today)),
        Change(key="/donor/identityCheck/type", old=None, new="one-login"),
    ]

    result = validate_donor_confirm_identity(changes, Lpa())

    assert result.identity_check.type == IdentityCheckType.ONE_LOGIN
    assert result.identity_check.checked_at == today
    assert result.actor is IdentityActor.DONOR


def test_confirm_identity_donor_bad_fields_fails():
    stamp = format_time(_now())
    changes = [
        Change(key="/irrelevant", old=None, new=stamp),
        Change(key="/donor/identityCheck/irrelevant", old=None, new=stamp),
        Change(key="/donor/identityCheck/type", old=None, new="rinky-dink-login-system"),
    ]

    with pytest.raises(UpdateRejected) as exc:
        validate_donor_confirm_identity(changes, Lpa())

    assert Counter(exc.value.errors) == Counter(
        [
            FieldError("/changes", "missing /donor/identityCheck/checkedAt"),
            FieldError("/changes/0", "unexpected change provided"),
            FieldError("/changes/1", "unexpected change provided"),
            FieldError("/changes/2/new", "invalid value"),
        ]
    )


def test_confirm_identity_donor_and_certificate_provider_fails():
    changes = [
        Change(
            key="/certificateProvider/identityCheck/checkedAt",
            old=None,
            new=format_time(_now()),
        ),
        Change(key="/donor/identityCheck/type", old=None, new="one-login"),
    ]

    with pytest.raises(UpdateRejected) as exc:
        validate_donor_confirm_identity(changes, Lpa())

    assert Counter(exc.value.errors) == Counter(
        [
            FieldError("/changes", "missing /donor/identityCheck/checkedAt"),
            FieldError("/changes/0", "unexpected change provided"),
        ]
    )


def test_confirm_identity_donor_mismatch_with_existing_lpa_fails():
    existing = IdentityCheck(
        type="not-one-login", checked_at=_now() - dt.timedelta(days=365)
    )
    lpa = Lpa(donor=Donor(identity_check=existing))
    original = IdentityCheck(type=existing.type, checked_at=existing.checked_at)
    changes = [
        Change(key="/donor/identityCheck/checkedAt", old=None, new=format_time(_now())),
        Change(key="/donor/identityCheck/type", old=None, new="one-login"),
    ]

    with pytest.raises(UpdateRejected) as exc:
        validate_donor_confirm_identity(changes, lpa)

    assert Counter(exc.value.errors) == Counter(
        [
            FieldError("/changes/0/old", "does not match existing value"),
            FieldError("/changes/1/old", "does not match existing value"),
        ]
    )
    assert lpa.donor.identity_check == original


def test_confirm_identity_missing_prefix():
    with pytest.raises(UpdateRejected) as exc:
        validate_donor_confirm_identity([], Lpa())
    assert exc.value.errors == [FieldError("/changes", "missing /donor/identityCheck/...")]


def test_confirm_identity_certificate_provider():
    today = _now()
    changes = [
        Change(
            key="/certificateProvider/identityCheck/checkedAt",
            old=None,
            new=format_time(today),
        ),
        Change(key="/certificateProvider/identityCheck/type", old=None, new="opg-paper-id"),
    ]

    result = validate_certificate_provider_confirm_identity(changes, Lpa())

    assert result.identity_check.type == IdentityCheckType.OPG_PAPER_ID
    assert format_time(result.identity_check.checked_at) == format_time(today)
    assert result.actor is IdentityActor.CERTIFICATE_PROVIDER


def test_confirm_identity_with_matching_existing_values():
    earlier = _now() - dt.timedelta(days=1)
    later = _now()
    existing = IdentityCheck(type="opg-paper-id", checked_at=earlier)
    changes = [
        Change(key="/x/type", old="opg-paper-id", new="one-login"),
        Change(key="/x/checkedAt", old=format_time(earlier), new=format_time(later)),
    ]

    result = validate_confirm_identity("/x", IdentityActor.DONOR, existing, changes)

    assert result.identity_check == IdentityCheck(type="one-login", checked_at=later)


def test_confirm_identity_apply_donor():
    check = IdCheckComplete(
        actor=IdentityActor.DONOR, identity_check=IdentityCheck(type="one-login")
    )
    lpa = Lpa()
    check.apply(lpa)
    assert lpa.donor.identity_check == IdentityCheck(type="one-login")
    assert lpa.certificate_provider.identity_check is None


def test_confirm_identity_apply_certificate_provider():
    check = IdCheckComplete(
        actor=IdentityActor.CERTIFICATE_PROVIDER,
        identity_check=IdentityCheck(type="opg-paper-id"),
    )
    lpa = Lpa()
    check.apply(lpa)
    assert lpa.certificate_provider.identity_check == IdentityCheck(type="opg-paper-id")
    assert lpa.donor.identity_check is None