"""Checks on single values, each giving a list of field errors."""

from __future__ import annotations

import datetime as dt
import re
from enum import Enum
from typing import Any

from lpastore.models import Date, FieldError

_REQUIRED = "field is required"

_UUID = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}",
    re.ASCII,
)

_COUNTRIES = frozenset(
    """
    AD AE AF AG AI AL AM AO AQ AR AS AT AU AW AX AZ
    BA BB BD BE BF BG BH BI BJ BL BM BN BO BQ BR BS BT BV BW BY BZ
    CA CC CD CF CG CH CI CK CL CM CN CO CR CU CV CW CX CY CZ
    DE DJ DK DM DO DZ EC EE EG EH ER ES ET FI FJ FK FM FO FR
    GA GB GD GE GF GG GH GI GL GM GN GP GQ GR GS GT GU GW GY
    HK HM HN HR HT HU ID IE IL IM IN IO IQ IR IS IT JE JM JO JP
    KE KG KH KI KM KN KP KR KW KY KZ LA LB LC LI LK LR LS LT LU LV LY
    MA MC MD ME MF MG MH MK ML MM MN MO MP MQ MR MS MT MU MV MW MX MY MZ
    NA NC NE NF NG NI NL NO NP NR NU NZ OM
    PA PE PF PG PH PK PL PM PN PR PS PT PW PY QA RE RO RS RU RW
    SA SB SC SD SE SG SH SI SJ SK SL SM SN SO SR SS ST SV SX SY SZ
    TC TD TF TG TH TJ TK TL TM TN TO TR TT TV TW TZ
    UA UG UM US UY UZ VA VC VE VG VI VN VU WF WS YE YT ZA ZM ZW
    """.split()
)


def check_required(source: str, value: str) -> list[FieldError]:
    return [FieldError(source, _REQUIRED)] if value == "" else []


def check_uuid(source: str, value: str) -> list[FieldError]:
    if value == "":
        return [FieldError(source, _REQUIRED)]
    if not _UUID.fullmatch(value):
        return [FieldError(source, "invalid format")]
    return []


def check_time(source: str, value: dt.datetime | None) -> list[FieldError]:
    return [FieldError(source, _REQUIRED)] if value is None else []


def check_date(source: str, value: Date) -> list[FieldError]:
    return [FieldError(source, _REQUIRED)] if value.is_zero() else []


def check_country(source: str, value: str) -> list[FieldError]:
    if value not in _COUNTRIES:
        return [FieldError(source, "must be a valid ISO-3166-1 country code")]
    return []


def check_valid(source: str, value: Any, kind: type[Enum]) -> list[FieldError]:
    """Check that value is one of the values of the enumeration kind."""
    if value not in {member.value for member in kind}:
        return [FieldError(source, "invalid value")]
    return []