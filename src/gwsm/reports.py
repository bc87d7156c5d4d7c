import threading
from functools import partial

from .access import gws
from .errors import format_error_key
from .pager import Stream, list_request, paginate
from .resources import optional

_get_service = partial(gws.family, "reports")

APPLICATIONS = ["access_transparency", "admin", "calendar", "chat", "drive", "gcp", "gplus",
                "groups", "groups_enterprise", "jamboard", "login", "meet", "mobile", "rules",
                "saml", "token", "user_accounts", "context_aware_access", "chrome", "data_studio",
                "keep"]

def list_activities(applicationName: str, userKey: str = "all", eventName: str = "",
                    filters: str = "", startTime: str = "", endTime: str = "",
                    actorIpAddress: str = "", orgUnitID: str = "", groupIdFilter: str = "",
                    fields: str = "", cap: int = 0,
                    cancel: threading.Event|None = None) -> Stream[dict]:
    """
    https://developers.google.com/admin-sdk/reports/reference/rest/v1/activities/list
    startTime / endTime are RFC 3339 timestamps.
    """
    if applicationName not in APPLICATIONS:
        raise ValueError(f"Invalid activities list() applicationName: {applicationName}")
    args = optional(eventName=eventName, filters=filters, startTime=startTime, endTime=endTime,
                    actorIpAddress=actorIpAddress, orgUnitID=orgUnitID, groupIdFilter=groupIdFilter,
                    fields=fields)
    fetch = list_request(_get_service().activities().list, userKey=userKey,
                         applicationName=applicationName, maxResults=1000, **args)
    return paginate(fetch, format_error_key(applicationName, userKey), "items", cap, cancel)
