import threading
from functools import partial

from ..access import gws
from ..errors import format_error_key
from ..pager import Stream, list_request, paginate
from ..retry import execute, run_action
from ..resources import optional

_get_service = partial(gws.family, "admin")

def get(groupKey: str, fields: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/groups/get
    """
    request = _get_service().groups().get(groupKey=groupKey, **optional(fields=fields))
    return execute(format_error_key(groupKey), request)

def list(customer: str = "my_customer", domain: str = "", query: str = "",
         userKey: str = "", fields: str = "", orderBy: str = "", sortOrder: str = "",
         cap: int = 0, cancel: threading.Event|None = None) -> Stream[dict]:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/groups/list
    With userKey only the groups that user is a direct member of are listed.
    """
    args = optional(query=query, userKey=userKey, fields=fields, orderBy=orderBy, sortOrder=sortOrder)
    if domain:
        args["domain"] = domain
    elif not userKey:
        args["customer"] = customer
    fetch = list_request(_get_service().groups().list, maxResults=200, **args)
    return paginate(fetch, format_error_key(userKey or domain or customer, query), "groups", cap, cancel)

def insert(group: dict, fields: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/groups/insert
    """
    request = _get_service().groups().insert(body=group, **optional(fields=fields))
    return execute(format_error_key(group.get("email", "")), request)

def patch(groupKey: str, group: dict, fields: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/groups/patch
    """
    request = _get_service().groups().patch(groupKey=groupKey, body=group, **optional(fields=fields))
    return execute(format_error_key(groupKey), request)

def delete(groupKey: str) -> bool:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/groups/delete
    """
    request = _get_service().groups().delete(groupKey=groupKey)
    return run_action(format_error_key(groupKey), request.execute)
