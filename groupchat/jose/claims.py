"""Typed claims and time-window validation.

Only ``exp`` and ``nbf`` are interpreted here. Every other claim, including
``iss``, passes through untouched.
"""

import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional, Union

from ..exceptions import InvalidClaimsError, TokenExpiredError, TokenNotYetValidError

DEFAULT_LEEWAY_SECONDS = 1.0

Number = Union[int, float]

_RESERVED = ("iss", "exp", "nbf")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class Claims:
    """Reserved claims as typed fields, everything else in ``extra``.

    ``Claims.from_dict(p).to_dict() == p`` for every JSON object payload.
    """

    iss: Optional[str] = None
    exp: Optional[Number] = None
    nbf: Optional[Number] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Claims":
        iss = payload.get("iss")
        if iss is not None and not isinstance(iss, str):
            raise InvalidClaimsError("'iss' must be a string")
        for name in ("exp", "nbf"):
            if name in payload and not _is_number(payload[name]):
                raise InvalidClaimsError(f"'{name}' must be numeric")
        return cls(
            iss=iss,
            exp=payload.get("exp"),
            nbf=payload.get("nbf"),
            # An explicit "iss": null stays in extra so it survives to_dict().
            extra={k: v for k, v in payload.items() if k not in _RESERVED or v is None},
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.iss is not None:
            out["iss"] = self.iss
        if self.exp is not None:
            out["exp"] = self.exp
        if self.nbf is not None:
            out["nbf"] = self.nbf
        out.update(self.extra)
        return out


def _numeric_claim(payload: Mapping[str, Any], name: str) -> Optional[float]:
    if name not in payload:
        return None
    value = payload[name]
    try:
        number = float(value) if _is_number(value) else math.nan
    except OverflowError:
        # Integers beyond float range.
        number = math.nan
    if not math.isfinite(number):
        raise InvalidClaimsError(
            f"'{name}' claim must be a finite number", details={"claim": name}
        )
    return number


def validate_claims(
    payload: Mapping[str, Any],
    leeway: float = DEFAULT_LEEWAY_SECONDS,
    now: Optional[float] = None,
) -> Mapping[str, Any]:
    """Check ``exp`` and ``nbf`` against *now* and return *payload* unchanged.

    Raises:
        InvalidClaimsError: ``exp`` or ``nbf`` present but not numeric.
        TokenExpiredError: ``now > exp + leeway``.
        TokenNotYetValidError: ``now < nbf - leeway``.
    """
    if now is None:
        now = time.time()

    exp = _numeric_claim(payload, "exp")
    nbf = _numeric_claim(payload, "nbf")

    if exp is not None and now > exp + leeway:
        raise TokenExpiredError("Token has expired", details={"exp": exp})
    if nbf is not None and now < nbf - leeway:
        raise TokenNotYetValidError("Token is not valid yet", details={"nbf": nbf})
    return payload


def numeric_date(
    value: Union[datetime, timedelta, Number],
    now: Optional[float] = None,
) -> int:
    """Convert an instant or an offset into whole Unix seconds.

    A ``datetime`` is absolute (naive values are taken as UTC); a
    ``timedelta`` or a number is an offset from *now*. Halves round up.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        seconds = value.timestamp()
    else:
        if now is None:
            now = time.time()
        if isinstance(value, timedelta):
            value = value.total_seconds()
        seconds = now + value
    return math.floor(seconds + 0.5)
