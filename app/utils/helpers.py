"""Shared parsing helpers used by models, services and blueprints.

parse_date:      returns None on empty/invalid input
parse_datetime:  returns None on empty/invalid input, always tz-aware (UTC)
utcnow:          single clock source so tests can monkeypatch it
local_today:     calendar date at the field teams' timezone
"""
import logging
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


DEFAULT_TIMEZONE = "America/Sao_Paulo"


def local_today(tz_name: str | None = None, now: datetime | None = None) -> date:
    """Today's date in ``tz_name`` (default America/Sao_Paulo).

    ``now`` must be tz-aware; it defaults to ``utcnow()``.
    """
    now = now or utcnow()
    return now.astimezone(ZoneInfo(tz_name or DEFAULT_TIMEZONE)).date()


def parse_date(value):
    """Parse a date string (ISO or DD/MM/YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD/MM/YYYY (Brazilian format)
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d/%m/%Y").date()
    except (ValueError, TypeError):
        return None


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Same as parse_date() but raises ValueError instead of returning None,
    so blueprints can answer 400 for a malformed date while still
    accepting an explicit empty value.
    """
    if not value:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}. Expected YYYY-MM-DD or DD/MM/YYYY")
    return parsed


def parse_datetime(value):
    """Parse an ISO datetime string; naive values are taken as UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except (ValueError, TypeError):
            logger.debug("Unparseable datetime value: %r", value)
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def commit_or_raise(action: str) -> None:
    """Commit the session or roll back and raise StorageError.

    Driver messages pass through in ``StorageError.detail``. Permission
    denials from the database get an actionable message instead of the raw
    driver text.
    """
    from sqlalchemy.exc import IntegrityError, SQLAlchemyError

    from app.core.exceptions import StorageError
    from app.models import db

    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        detail = str(getattr(exc, "orig", exc))
        logger.warning("Integrity error during %s: %s", action, detail)
        raise StorageError(f"{action} failed: constraint violation", detail=detail) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        detail = str(getattr(exc, "orig", exc))
        logger.error("Database error during %s: %s", action, detail)
        lowered = detail.lower()
        if "row-level security" in lowered or "permission denied" in lowered:
            raise StorageError(
                f"{action} was denied by the database; re-run the permission setup "
                "(flask db upgrade and the role grants) before retrying",
                detail=detail,
            ) from exc
        raise StorageError(f"{action} failed: {detail}", detail=detail) from exc
