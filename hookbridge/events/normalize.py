"""Date and header normalisation for GitHub ``push`` deliveries.

GitHub reports ``repository.created_at`` and ``repository.pushed_at`` as
Unix epoch seconds in push payloads while every other event type uses
ISO-8601 strings. Rewriting both fields gives consumers a single format.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import email.utils
import typing as typ

from hookbridge.events.classify import github_headers
from hookbridge.events.errors import InvalidTimestampError

if typ.TYPE_CHECKING:
    from hookbridge.events.models import InboundRequest

REPOSITORY_DATE_FIELDS = ("created_at", "pushed_at")

_PARSE_FAILURES = (TypeError, ValueError, OverflowError, OSError)


def _parse_text(text: str) -> dt.datetime:
    stripped = text.strip()
    try:
        return dt.datetime.fromisoformat(stripped)
    except ValueError:
        pass
    # Raises ValueError when the string is not an RFC 2822 date either
    return email.utils.parsedate_to_datetime(stripped)


def _to_datetime(value: object) -> dt.datetime:
    match value:
        case bool():
            msg = "booleans are not timestamps"
            raise TypeError(msg)
        case int() | float():
            return dt.datetime.fromtimestamp(value, tz=dt.UTC)
        case dt.datetime():
            return value
        case str():
            return _parse_text(value)
        case _:
            msg = f"unsupported timestamp type {type(value).__name__}"
            raise TypeError(msg)


def iso_date(value: object, *, field: str = "value") -> str:
    """Format a timestamp as a UTC ISO-8601 string with milliseconds.

    Numbers are Unix epoch seconds, strings may be ISO-8601 or RFC 2822, and
    naive datetimes are read as UTC. Formatting an already formatted value
    returns it unchanged.

    Parameters
    ----------
    value
        Raw timestamp taken from the payload.
    field
        Dotted path of the field, used in the error message.

    Returns
    -------
    str
        Timestamp such as ``2021-01-01T00:00:00.000Z``.

    Raises
    ------
    InvalidTimestampError
        If ``value`` cannot be read as a point in time.

    Examples
    --------
    >>> iso_date(1609459200)
    '2021-01-01T00:00:00.000Z'
    >>> iso_date("Fri, 01 Jan 2021 00:00:00 GMT")
    '2021-01-01T00:00:00.000Z'

    """
    try:
        moment = _to_datetime(value)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=dt.UTC)
        formatted = moment.astimezone(dt.UTC).isoformat(timespec="milliseconds")
    except _PARSE_FAILURES as exc:
        raise InvalidTimestampError(field, value) from exc
    return formatted.replace("+00:00", "Z")


def normalize_repository_dates(body: typ.Any) -> typ.Any:  # noqa: ANN401 - JSON value
    """Return ``body`` with the repository dates rewritten by :func:`iso_date`.

    Bodies without a ``repository`` object, and date fields that are absent
    or ``null``, are returned as they are. The input is never mutated.
    """
    if not isinstance(body, dict):
        return body
    repository = body.get("repository")
    if not isinstance(repository, dict):
        return body

    fixed = dict(repository)
    for name in REPOSITORY_DATE_FIELDS:
        if fixed.get(name) is not None:
            fixed[name] = iso_date(fixed[name], field=f"repository.{name}")
    return {**body, "repository": fixed}


def normalize_push_request(request: InboundRequest) -> InboundRequest:
    """Trim headers to the GitHub pair and fix repository dates."""
    return dc.replace(
        request,
        headers=github_headers(request.headers),
        body=normalize_repository_dates(request.body),
    )
