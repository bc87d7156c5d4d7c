import datetime
import threading
from functools import partial
from zoneinfo import ZoneInfo

from .access import gws
from .errors import format_error_key
from .pager import Stream, list_request, paginate
from .resources import optional
from .retry import execute, run_action

_get_service = partial(gws.family, "calendar")

_SEND_UPDATES = ["all", "externalOnly", "none"]

def _check_send_updates(sendUpdates: str, what: str) -> None:
    if sendUpdates and sendUpdates not in _SEND_UPDATES:
        raise ValueError(f"Invalid {what} sendUpdates value: {sendUpdates}")

def _rfc3339(t: str|datetime.datetime, tz: ZoneInfo|None = None) -> str:
    """
    timeMin and timeMax MUST carry a tz offset, naive values are taken to be
    in tz (UTC if not given).
    """
    dt = t if isinstance(t, datetime.datetime) else datetime.datetime.fromisoformat(str(t))
    dt = dt.replace(microsecond=0)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz if tz is not None else ZoneInfo("UTC"))
    return dt.isoformat()

def get_calendar(calendarId: str = "primary", fields: str = "") -> dict:
    """
    https://developers.google.com/calendar/api/v3/reference/calendars/get
    The 'primary' default is the calendar of the authenticated (or impersonated) user.
    """
    request = _get_service().calendars().get(calendarId=calendarId, **optional(fields=fields))
    return execute(format_error_key(calendarId), request)

def patch_calendar(calendarId: str, calendar: dict, fields: str = "") -> dict:
    """
    https://developers.google.com/calendar/api/v3/reference/calendars/patch
    """
    request = _get_service().calendars().patch(calendarId=calendarId, body=calendar, **optional(fields=fields))
    return execute(format_error_key(calendarId), request)

def list_events(calendarId: str = "primary", q: str = "", timeMin: str|datetime.datetime|None = None,
                timeMax: str|datetime.datetime|None = None, timeZone: str|ZoneInfo|None = None,
                singleEvents: bool = False, orderBy: str = "", showDeleted: bool = False,
                fields: str = "", cap: int = 0, cancel: threading.Event|None = None) -> Stream[dict]:
    """
    https://developers.google.com/calendar/api/v3/reference/events/list
    orderBy 'startTime' requires singleEvents.
    """
    if orderBy and orderBy not in ["startTime", "updated"]:
        raise ValueError(f"Invalid events list() orderBy: {orderBy}")
    tz = None
    if timeZone:
        tz = timeZone if isinstance(timeZone, ZoneInfo) else ZoneInfo(str(timeZone))
    args = optional(q=q, orderBy=orderBy, fields=fields, timeZone=str(tz) if tz else None,
                    timeMin=_rfc3339(timeMin, tz) if timeMin else None,
                    timeMax=_rfc3339(timeMax, tz) if timeMax else None)
    fetch = list_request(_get_service().events().list, calendarId=calendarId, maxResults=2500,
                         singleEvents=singleEvents, showDeleted=showDeleted, **args)
    return paginate(fetch, format_error_key(calendarId), "items", cap, cancel)

def get_event(calendarId: str, eventId: str, maxAttendees: int = 0, timeZone: str = "",
              fields: str = "") -> dict:
    """
    https://developers.google.com/calendar/api/v3/reference/events/get
    """
    args = optional(timeZone=timeZone, fields=fields)
    if maxAttendees > 0:
        args["maxAttendees"] = maxAttendees
    request = _get_service().events().get(calendarId=calendarId, eventId=eventId, **args)
    return execute(format_error_key(calendarId, eventId), request)

def insert_event(calendarId: str, event: dict, sendUpdates: str = "", maxAttendees: int = 0,
                 supportsAttachments: bool = False, conferenceDataVersion: int = 0,
                 fields: str = "") -> dict:
    """
    https://developers.google.com/calendar/api/v3/reference/events/insert
    """
    _check_send_updates(sendUpdates, "events insert()")
    args = optional(sendUpdates=sendUpdates, fields=fields)
    if maxAttendees > 0:
        args["maxAttendees"] = maxAttendees
    request = _get_service().events().insert(calendarId=calendarId, body=event,
                                             supportsAttachments=supportsAttachments,
                                             conferenceDataVersion=0 if not conferenceDataVersion else 1, **args)
    return execute(format_error_key(calendarId, event.get("summary", "")), request)

def delete_event(calendarId: str, eventId: str, sendUpdates: str = "all") -> bool:
    """
    https://developers.google.com/calendar/api/v3/reference/events/delete
    """
    _check_send_updates(sendUpdates, "events delete()")
    request = _get_service().events().delete(calendarId=calendarId, eventId=eventId,
                                             **optional(sendUpdates=sendUpdates))
    return run_action(format_error_key(calendarId, eventId), request.execute)

def list_acl(calendarId: str, showDeleted: bool = False, fields: str = "",
             cap: int = 0, cancel: threading.Event|None = None) -> Stream[dict]:
    """
    https://developers.google.com/calendar/api/v3/reference/acl/list
    """
    fetch = list_request(_get_service().acl().list, calendarId=calendarId, maxResults=250,
                         showDeleted=showDeleted, **optional(fields=fields))
    return paginate(fetch, format_error_key(calendarId), "items", cap, cancel)

def insert_acl(calendarId: str, rule: dict, sendNotifications: bool = False, fields: str = "") -> dict:
    """
    https://developers.google.com/calendar/api/v3/reference/acl/insert
    rule is e.g. {"role": "reader", "scope": {"type": "user", "value": "someone@example.com"}}
    """
    request = _get_service().acl().insert(calendarId=calendarId, body=rule,
                                          sendNotifications=sendNotifications, **optional(fields=fields))
    return execute(format_error_key(calendarId, rule.get("scope", {}).get("value", "")), request)

def delete_acl(calendarId: str, ruleId: str) -> bool:
    """
    https://developers.google.com/calendar/api/v3/reference/acl/delete
    """
    request = _get_service().acl().delete(calendarId=calendarId, ruleId=ruleId)
    return run_action(format_error_key(calendarId, ruleId), request.execute)
