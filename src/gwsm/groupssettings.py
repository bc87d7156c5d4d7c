from functools import partial

from .access import gws
from .errors import format_error_key
from .resources import optional
from .retry import execute

_get_service = partial(gws.family, "groupssettings")

def get(groupUniqueId: str, fields: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/groups-settings/v1/reference/groups/get
    groupUniqueId is the group's email address.  JSON is requested explicitly,
    the API defaults to Atom.
    """
    request = _get_service().groups().get(groupUniqueId=groupUniqueId, alt="json", **optional(fields=fields))
    return execute(format_error_key(groupUniqueId), request)

def patch(groupUniqueId: str, settings: dict, fields: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/groups-settings/v1/reference/groups/patch
    """
    request = _get_service().groups().patch(groupUniqueId=groupUniqueId, body=settings, alt="json",
                                            **optional(fields=fields))
    return execute(format_error_key(groupUniqueId), request)
