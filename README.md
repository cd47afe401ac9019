# lpastore

`lpastore` keeps lasting power of attorney (LPA) records consistent as they
change. Every change arrives as an *update*. An update has a type, such as
`ATTORNEY_SIGN` or `REGISTER`, and a list of changes. Each change names a key,
the value it expects to find there (`old`) and the value to set (`new`).

The package checks the update against the stored LPA. If the update is valid,
it is applied to the record. If it is not, an `UpdateRejected` exception is
raised. The exception carries a list of `FieldError`s, one for each problem,
and each error points at the change that caused it.

## Installation

```
pip install .
```

To run the test suite as well:

```
pip install .[test]
pytest
```

## Validating and applying an update

```python
from lpastore.dispatch import validate_update
from lpastore.models import Lpa, Update, UpdateRejected

lpa = Lpa(uid="M-AAAA-BBBB-CCCC")
update = Update.from_json("""
{
  "type": "CERTIFICATE_PROVIDER_SIGN",
  "changes": [
    {"key": "/certificateProvider/signedAt", "old": null, "new": "2022-01-02T12:13:14Z"},
    {"key": "/certificateProvider/contactLanguagePreference", "old": null, "new": "en"}
  ]
}
""")

try:
    validate_update(update, lpa).apply(lpa)
except UpdateRejected as rejected:
    for error in rejected.errors:
        print(error.source, error.detail)
else:
    print(lpa.to_json())
```

Each error's `source` points into the request:

- `/changes/1/new` means the new value of the second change is wrong, for
  example because it has an `unexpected type` or an `invalid value`.
- `/changes/0/old` with `does not match existing value` means the `old` value
  sent differs from what the record holds.
- `/changes/2` with `unexpected change provided` means nothing used that
  change.
- `/changes` with the detail `missing /certificateProvider/signedAt` means a
  required change was not sent at all.

Timestamps are RFC 3339 strings. Precision beyond microseconds is dropped when
they are read. Dates are `YYYY-MM-DD`.

## Supported update types

| Type | Effect |
| --- | --- |
| `ATTORNEY_SIGN` | records an attorney's signature and contact details |
| `ATTORNEY_OPT_OUT` | marks the attorney named by the update's author as removed |
| `CERTIFICATE_PROVIDER_SIGN` | records the certificate and the provider's details |
| `CERTIFICATE_PROVIDER_OPT_OUT` | marks the LPA as cannot-register |
| `CERTIFICATE_PROVIDER_CONFIRM_IDENTITY` | stores the provider's identity check |
| `DONOR_CONFIRM_IDENTITY` | stores the donor's identity check |
| `DONOR_WITHDRAW_LPA` | withdraws an LPA that is not registered or unregisterable |
| `TRUST_CORPORATION_SIGN` | records one or two signatories for a trust corporation |
| `TRUST_CORPORATION_OPT_OUT` | marks the trust corporation named by the update's author as removed |
| `PERFECT`, `STATUTORY_WAITING_PERIOD` | moves a fully signed, in-progress LPA into the statutory waiting period |
| `REGISTER` | registers an LPA that is in the statutory waiting period |
| `OPG_STATUS_CHANGE` | sets cannot-register, cancelled, do-not-register or expired |
| `CORRECTION` | corrects the donor's details and the LPA's signing date |

Any other type is rejected with `/type: invalid value`.

## Modules

- `lpastore.models` holds the record and the messages:
  - the LPA record and its parts: `Lpa`, `Donor`, `Attorney`,
    `TrustCorporation`, `Signatory`, `CertificateProvider`, `Address`,
    `IdentityCheck` and `Date`;
  - the enumerations `Lang`, `Channel`, `LpaStatus`, `AttorneyStatus` and
    `IdentityCheckType`;
  - the `Update` and `Change` messages;
  - `FieldError` and `UpdateRejected`;
  - the helpers `author_uid`, `format_time` and `parse_time`.

  `Lpa.to_dict()` and `Lpa.to_json()` give the record with camelCase keys, and
  they leave out empty values.
- `lpastore.validation` holds checks on single values, each returning a list
  of `FieldError`s:
  - `check_required`;
  - `check_uuid`;
  - `check_time`;
  - `check_date`;
  - `check_country`, for ISO‑3166‑1 alpha‑2 codes;
  - `check_valid`, for membership of an enumeration.
- `lpastore.parser` holds `Parser` (also made by `changes(...)`), which works
  through a list of changes with `field`, `prefix` and `each`. It collects
  errors; `consumed()` reports every change that nothing used, and
  `out_of_range()` flags changes for an index that cannot be used.
- `lpastore.signing`, `lpastore.opt_outs`, `lpastore.status`,
  `lpastore.identity` and `lpastore.correction` hold one class for each kind
  of update, each with an `apply(lpa)` method, and a `validate_*` function
  for each kind.
- `lpastore.dispatch` provides `validate_update(update, lpa)` and the
  `Applyable` protocol.
- `lpastore.handler` holds `UpdateHandler`.
- `lpastore.gateway` holds `Gateway`, `Route` and `random_uid`.

## Request handler

`UpdateHandler(event_client, store, verifier, logger=None)` handles a
`ProxyRequest`, whose body is a JSON update and whose `path_parameters["uid"]`
names the LPA. It returns a `ProxyResponse`. You supply the collaborators:

- `verifier.verify_header(request)` returns the subject of the caller's token,
  which becomes the update's author. It raises if the caller cannot be
  verified.
- `store.get(uid)` returns the `Lpa`, or `None`.
- `store.put_changes(lpa, update)` saves the new record and the update.
- `event_client.send_lpa_updated(uid, change_type)` announces the change. A
  failure here is logged and does not change the response.

The handler responds with one of these:

- `201` with the updated LPA as JSON;
- `400` with the field errors;
- `401` if the caller cannot be verified;
- `404` if the LPA is not found;
- `500` if the body is not a valid update or the store fails.

Error bodies have the form `{"code": ..., "detail": ..., "errors": [...]}` and
are built by `Problem.respond()`.

## Local gateway

```
lpastore-gateway [--host HOST] [--port PORT] [--lambda-url URL] [--store-url URL]
```

This starts an HTTP server, on port 8080 by default. It wraps each request as
an API gateway event and posts it to a lambda at `--lambda-url`, in which
`{name}` is replaced by the lambda's name:

- `PUT /lpas/{uid}` goes to `create`;
- `GET /lpas/{uid}` goes to `get`;
- `POST /lpas/{uid}/updates` goes to `update`;
- `POST /lpas` goes to `getlist`.

Other paths get a `404`. A lambda reply that cannot be read gets a `502`.

Posting `{"state": "An LPA with UID M-XXXX-XXXX-XXXX exists"}` to
`/_pact_state` sets up that state for contract tests:

1. It maps the UID to a fresh one from `random_uid()`.
2. It creates a sample LPA by sending `PUT /lpas/{uid}` to `--store-url`.

The state `... does not exist` only sets up the mapping. Later requests that
use a mapped UID are sent on with its replacement.

## What the package does not do

The package has no storage, event bus or token verification of its own.
`UpdateHandler` works with whatever store, event client and verifier it is
given. The gateway only forwards requests. The `create`, `get` and `getlist`
lambdas it sends them to are not part of this package.