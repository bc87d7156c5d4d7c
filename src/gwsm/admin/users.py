import threading
from functools import partial

from ..access import gws
from ..errors import format_error_key
from ..pager import Stream, list_request, paginate
from ..retry import execute, run_action
from ..resources import optional

_get_service = partial(gws.family, "admin")

def get(userKey: str, fields: str = "", projection: str = "",
        customFieldMask: str = "", viewType: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/users/get
    """
    request = _get_service().users().get(userKey=userKey, **optional(
        fields=fields, projection=projection, customFieldMask=customFieldMask, viewType=viewType))
    return execute(format_error_key(userKey), request)

def list(query: str = "", customer: str = "my_customer", domain: str = "",
         fields: str = "", showDeleted: bool = False, projection: str = "",
         orderBy: str = "", sortOrder: str = "", viewType: str = "",
         customFieldMask: str = "", cap: int = 0,
         cancel: threading.Event|None = None) -> Stream[dict]:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/users/list
    Streams the users, 500 per page.  Either customer or domain is used,
    domain wins when both are given.
    """
    args = optional(query=query, fields=fields, projection=projection, orderBy=orderBy,
                    sortOrder=sortOrder, viewType=viewType, customFieldMask=customFieldMask)
    if domain:
        args["domain"] = domain
    else:
        args["customer"] = customer
    if showDeleted:
        args["showDeleted"] = "true"
    fetch = list_request(_get_service().users().list, maxResults=500, **args)
    return paginate(fetch, format_error_key(domain or customer, query), "users", cap, cancel)

def insert(user: dict, fields: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/users/insert
    """
    request = _get_service().users().insert(body=user, **optional(fields=fields))
    return execute(format_error_key(user.get("primaryEmail", "")), request)

def patch(userKey: str, user: dict, fields: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/users/patch
    """
    request = _get_service().users().patch(userKey=userKey, body=user, **optional(fields=fields))
    return execute(format_error_key(userKey), request)

def delete(userKey: str) -> bool:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/users/delete
    """
    request = _get_service().users().delete(userKey=userKey)
    return run_action(format_error_key(userKey), request.execute)

def make_admin(userKey: str, status: bool = True) -> bool:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/users/makeAdmin
    """
    request = _get_service().users().makeAdmin(userKey=userKey, body={"status": status})
    return run_action(format_error_key(userKey), request.execute)

def make_user_body(primaryEmail: str = "", givenName: str = "", familyName: str = "",
                   password: str = "", hashFunction: str = "", orgUnitPath: str = "",
                   recoveryEmail: str = "", recoveryPhone: str = "",
                   changePasswordAtNextLogin: bool|None = None, suspended: bool|None = None,
                   includeInGlobalAddressList: bool|None = None) -> dict:
    """
    Build a users insert / patch body from the commonly used fields.
    Unset (empty / None) fields are left out so a patch only touches what was given.
    """
    if hashFunction and hashFunction not in ["MD5", "SHA-1", "crypt"]:
        raise ValueError(f"Invalid user hashFunction: {hashFunction}")
    body = optional(primaryEmail=primaryEmail, password=password, hashFunction=hashFunction,
                    orgUnitPath=orgUnitPath, recoveryEmail=recoveryEmail, recoveryPhone=recoveryPhone,
                    changePasswordAtNextLogin=changePasswordAtNextLogin, suspended=suspended,
                    includeInGlobalAddressList=includeInGlobalAddressList)
    name = optional(givenName=givenName, familyName=familyName)
    if name:
        body["name"] = name
    return body
