import threading
from functools import partial

from ..access import gws
from ..errors import format_error_key
from ..flags import ParameterMap
from ..pager import Stream, list_request, paginate
from ..resources import optional
from ..retry import execute, run_action

_get_service = partial(gws.family, "drive")

def list(fileId: str, fields: str = "", useDomainAdminAccess: bool = False,
         cap: int = 0, cancel: threading.Event|None = None) -> Stream[dict]:
    """
    https://developers.google.com/drive/api/reference/rest/v3/permissions/list
    """
    fetch = list_request(_get_service().permissions().list, fileId=fileId, pageSize=100,
                         supportsAllDrives=True, useDomainAdminAccess=useDomainAdminAccess,
                         **optional(fields=fields))
    return paginate(fetch, format_error_key(fileId), "permissions", cap, cancel)

def create(fileId: str, permission: dict, sendNotificationEmail: bool = False,
           emailMessage: str = "", transferOwnership: bool = False,
           useDomainAdminAccess: bool = False, fields: str = "") -> dict:
    """
    https://developers.google.com/drive/api/reference/rest/v3/permissions/create
    """
    request = _get_service().permissions().create(fileId=fileId, body=permission, supportsAllDrives=True,
                                                  sendNotificationEmail=sendNotificationEmail,
                                                  transferOwnership=transferOwnership,
                                                  useDomainAdminAccess=useDomainAdminAccess,
                                                  **optional(emailMessage=emailMessage, fields=fields))
    trustee = permission.get("emailAddress", "") or permission.get("domain", "") or permission.get("type", "")
    return execute(format_error_key(fileId, trustee), request)

def delete(fileId: str, permissionId: str, useDomainAdminAccess: bool = False) -> bool:
    """
    https://developers.google.com/drive/api/reference/rest/v3/permissions/delete
    """
    request = _get_service().permissions().delete(fileId=fileId, permissionId=permissionId, supportsAllDrives=True,
                                                  useDomainAdminAccess=useDomainAdminAccess)
    return run_action(format_error_key(fileId, permissionId), request.execute)

def get_permission_id(flags: ParameterMap) -> str:
    """
    Work out the permissionId a command refers to.
    Exactly one of permissionId, emailAddress or domain must be set; for the
    latter two the permissions of folderId (or fileId) are searched for a
    matching trustee, case insensitively.
    """
    def _set(name):
        v = flags.get(name, None)
        return v is not None and v.is_set()

    possible = ["permissionId", "emailAddress", "domain"]
    if sum(1 for p in possible if _set(p)) != 1:
        raise ValueError(f"exactly one of {', '.join(possible)} must be set")
    if _set("permissionId"):
        return flags["permissionId"].get_string()
    fileId = flags["folderId"].get_string() if _set("folderId") else flags["fileId"].get_string()
    admin = flags["useDomainAdminAccess"].get_bool() if "useDomainAdminAccess" in flags else False
    key = "emailAddress" if _set("emailAddress") else "domain"
    wanted = flags[key].get_string().lower()
    permissions = list(fileId, fields=f"permissions({key},id),nextPageToken", useDomainAdminAccess=admin)
    found = ""
    for p in permissions:
        if not found and p.get(key, "").lower() == wanted:
            found = p.get("id", "")
            permissions.cancel.set()
    err = permissions.error()
    if err is not None and not found:
        raise err
    if not found:
        raise ValueError(f"can't find a matching rule for {wanted} on {fileId}")
    return found
