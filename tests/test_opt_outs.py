import copy
import datetime as dt

import pytest

from lpastore.models import (
    Attorney,
    AttorneyStatus,
    CertificateProvider,
    Change,
    FieldError,
    Lpa,
    LpaStatus,
    Signatory,
    TrustCorporation,
    Update,
    UpdateRejected,
)
from lpastore.opt_outs import (
    AttorneyOptOut,
    CertificateProviderOptOut,
    TrustCorporationOptOut,
    validate_attorney_opt_out,
    validate_certificate_provider_opt_out,
    validate_trust_corporation_opt_out,
)

NOW = dt.datetime.now(dt.timezone.utc)
AUTHOR = "urn:opg:poas:makeregister:users:dc487ebb-b39d-45ed-bb6a-7f950fd355c9"
AUTHOR_UID = "dc487ebb-b39d-45ed-bb6a-7f950fd355c9"
BAD_AUTHOR = "urn:opg:poas:makeregister:users:not-a-uid"


def _attorneys(*pairs):
    return [Attorney(uid=uid, status=status) for uid, status in pairs]


def _corporations(*pairs):
    return [TrustCorporation(uid=uid, status=status) for uid, status in pairs]


A = AttorneyStatus.ACTIVE
R = AttorneyStatus.REPLACEMENT
X = AttorneyStatus.REMOVED


@pytest.mark.parametrize(
    ("before", "after"),
    [
        pytest.param(
            _attorneys(("a", A), ("b", A), ("c", A)),
            _attorneys(("a", A), ("b", X), ("c", A)),
            id="successful apply",
        ),
        pytest.param(
            _attorneys(("a", A), ("b", R), ("c", A)),
            _attorneys(("a", A), ("b", X), ("c", A)),
            id="successful apply to replacement",
        ),
    ],
)
def test_attorney_opt_out_apply(before, after):
    lpa = Lpa(status=LpaStatus.IN_PROGRESS, attorneys=before)
    AttorneyOptOut(attorney_uid="b").apply(lpa)
    assert lpa == Lpa(status=LpaStatus.IN_PROGRESS, attorneys=after)


@pytest.mark.parametrize(
    ("attorneys", "detail"),
    [
        pytest.param(_attorneys(("a", A)), "attorney not found", id="not found"),
        pytest.param(
            [Attorney(uid="b", status=A, signed_at=NOW)],
            "attorney cannot opt out after signing",
            id="already signed",
        ),
    ],
)
def test_attorney_opt_out_apply_rejected(attorneys, detail):
    lpa = Lpa(status=LpaStatus.IN_PROGRESS, attorneys=attorneys)
    expected = copy.deepcopy(lpa)
    with pytest.raises(UpdateRejected) as info:
        AttorneyOptOut(attorney_uid="b").apply(lpa)
    assert info.value.errors == [FieldError("/type", detail)]
    assert lpa == expected


def test_validate_attorney_opt_out_valid():
    update = Update(author=AUTHOR, type="ATTORNEY_OPT_OUT", changes=[])
    assert validate_attorney_opt_out(update) == AttorneyOptOut(attorney_uid=AUTHOR_UID)


@pytest.mark.parametrize(
    ("update", "expected"),
    [
        pytest.param(
            Update(
                author=AUTHOR,
                type="ATTORNEY_OPT_OUT",
                changes=[Change("/something/someValue", None, "not expected")],
            ),
            [FieldError("/changes", "expected empty")],
            id="with changes",
        ),
        pytest.param(
            Update(author=BAD_AUTHOR, type="ATTORNEY_OPT_OUT", changes=[]),
            [FieldError("/author", "invalid format")],
            id="author UID not valid",
        ),
    ],
)
def test_validate_attorney_opt_out_rejected(update, expected):
    with pytest.raises(UpdateRejected) as info:
        validate_attorney_opt_out(update)
    assert info.value.errors == expected


def test_certificate_provider_opt_out_apply():
    lpa = Lpa(status=LpaStatus.IN_PROGRESS)
    CertificateProviderOptOut().apply(lpa)
    assert lpa.status == LpaStatus.CANNOT_REGISTER


def test_certificate_provider_opt_out_apply_when_certificate_provided():
    provider = CertificateProvider(email="a@example.com", signed_at=NOW)
    lpa = Lpa(certificate_provider=copy.deepcopy(provider))
    with pytest.raises(UpdateRejected) as info:
        CertificateProviderOptOut().apply(lpa)
    assert info.value.errors == [
        FieldError("/type", "certificate provider cannot opt out after providing certificate")
    ]
    assert lpa.certificate_provider == provider
    assert lpa.status == ""


def test_validate_certificate_provider_opt_out_valid():
    assert validate_certificate_provider_opt_out([]) == CertificateProviderOptOut()


def test_validate_certificate_provider_opt_out_with_changes():
    with pytest.raises(UpdateRejected) as info:
        validate_certificate_provider_opt_out(
            [Change("/something/someValue", None, "not expected")]
        )
    assert info.value.errors == [FieldError("/changes", "expected empty")]


@pytest.mark.parametrize(
    ("before", "after"),
    [
        pytest.param(
            _corporations(("a", A), ("b", A), ("c", A)),
            _corporations(("a", A), ("b", X), ("c", A)),
            id="successful apply",
        ),
        pytest.param(
            _corporations(("a", A), ("b", R), ("c", A)),
            _corporations(("a", A), ("b", X), ("c", A)),
            id="successful apply to replacement",
        ),
    ],
)
def test_trust_corporation_opt_out_apply(before, after):
    lpa = Lpa(status=LpaStatus.IN_PROGRESS, trust_corporations=before)
    TrustCorporationOptOut(trust_corporation_uid="b").apply(lpa)
    assert lpa == Lpa(status=LpaStatus.IN_PROGRESS, trust_corporations=after)


@pytest.mark.parametrize(
    ("corporations", "detail"),
    [
        pytest.param(_corporations(("a", A)), "trust corporation not found", id="not found"),
        pytest.param(
            [TrustCorporation(uid="b", status=A, signatories=[Signatory(signed_at=NOW)])],
            "trust corporation cannot opt out after signing",
            id="already signed",
        ),
    ],
)
def test_trust_corporation_opt_out_apply_rejected(corporations, detail):
    lpa = Lpa(status=LpaStatus.IN_PROGRESS, trust_corporations=corporations)
    expected = copy.deepcopy(lpa)
    with pytest.raises(UpdateRejected) as info:
        TrustCorporationOptOut(trust_corporation_uid="b").apply(lpa)
    assert info.value.errors == [FieldError("/type", detail)]
    assert lpa == expected


def test_validate_trust_corporation_opt_out_valid():
    update = Update(author=AUTHOR, type="TRUST_CORPORATION_OPT_OUT", changes=[])
    assert validate_trust_corporation_opt_out(update) == TrustCorporationOptOut(
        trust_corporation_uid=AUTHOR_UID
    )


@pytest.mark.parametrize(
    ("update", "expected"),
    [
        pytest.param(
            Update(
                author=AUTHOR,
                type="TRUST_CORPORATION_OPT_OUT",
                changes=[Change("/something/someValue", None, "not expected")],
            ),
            [FieldError("/changes", "expected empty")],
            id="with changes",
        ),
        pytest.param(
            Update(author=BAD_AUTHOR, type="TRUST_CORPORATION_OPT_OUT", changes=[]),
            [FieldError("/author", "invalid format")],
            id="author UID not valid",
        ),
    ],
)
def test_validate_trust_corporation_opt_out_rejected(update, expected):
    with pytest.raises(UpdateRejected) as info:
        validate_trust_corporation_opt_out(update)
    assert info.value.errors == expected