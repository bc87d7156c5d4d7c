import threading
from functools import partial

from ..access import gws
from ..errors import format_error_key
from ..flags import Flag, FlagSet, FlagType, ParameterMap, all_flags
from ..pager import Stream, list_request, paginate
from ..resources import optional
from ..retry import execute, run_action

_get_service = partial(gws.family, "admin")

_COMMANDS = ["delete", "get", "hasMember", "insert", "list", "patch", "set"]

MEMBER_FLAGS: FlagSet = {
    "groupKey": Flag(type=FlagType.STRING, available_for=list(_COMMANDS), required=list(_COMMANDS),
                     recursive=["delete", "get", "hasMember", "insert", "patch", "set"],
                     description="The group's email address, group alias, or the unique group ID."),
    "memberKey": Flag(type=FlagType.STRING, available_for=["delete", "get", "hasMember"],
                      required=["delete", "get", "hasMember"], exclude_from_all=True,
                      description="The member's (group or user) primary email address, alias, or unique ID."),
    "delivery_settings": Flag(type=FlagType.STRING, available_for=["insert", "patch", "set"],
                              recursive=["insert", "patch", "set"],
                              description="Mail delivery preferences of the member: ALL_MAIL, DAILY, DIGEST, DISABLED or NONE."),
    "role": Flag(type=FlagType.STRING, available_for=["insert", "patch", "set"],
                 defaults={"insert": "MEMBER", "set": "MEMBER"}, recursive=["insert", "patch", "set"],
                 description="The member's role in the group: MANAGER, MEMBER or OWNER."),
    "includeDerivedMembership": Flag(type=FlagType.BOOL, available_for=["list"],
                                     description="Whether to list indirect memberships."),
    "roles": Flag(type=FlagType.STRING, available_for=["list"],
                  description="Only list members with these roles (OWNER, MANAGER, MEMBER)."),
    "email": Flag(type=FlagType.STRING, available_for=["insert"], exclude_from_all=True,
                  description="The member's email address. A member can be a user or another group."),
    "emails": Flag(type=FlagType.STRING_SLICE, available_for=["set"],
                   description="Email addresses the group should have as members. Unset clears the group!"),
    "fields": Flag(type=FlagType.STRING, available_for=["get", "insert", "list", "patch", "set"],
                   recursive=["get", "insert", "patch", "set"],
                   description="Fields allows partial responses to be retrieved."),
}
MEMBER_FLAGS_ALL: FlagSet = all_flags(MEMBER_FLAGS)

def map_to_member(flags: ParameterMap) -> dict:
    """
    Build a member body from resolved flags.
    Only flags that were set are sent, but a flag set to an empty string is
    sent as such to clear the field.
    """
    member = {"kind": "admin#directory#member"}
    for flag, key in (("email", "email"), ("delivery_settings", "delivery_settings"), ("role", "role")):
        v = flags.get(flag, None)
        if v is not None and v.is_set():
            member[key] = v.get_string()
    return member

def get(groupKey: str, memberKey: str, fields: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/members/get
    """
    request = _get_service().members().get(groupKey=groupKey, memberKey=memberKey, **optional(fields=fields))
    return execute(format_error_key(groupKey, memberKey), request)

def has_member(groupKey: str, memberKey: str) -> bool:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/members/hasMember
    Also true for indirect memberships.
    """
    request = _get_service().members().hasMember(groupKey=groupKey, memberKey=memberKey)
    response = execute(format_error_key(groupKey, memberKey), request)
    return bool(response.get("isMember", False))

def list(groupKey: str, roles: str = "", fields: str = "",
         includeDerivedMembership: bool = False, cap: int = 0,
         cancel: threading.Event|None = None) -> Stream[dict]:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/members/list
    """
    args = optional(roles=roles, fields=fields)
    if includeDerivedMembership:
        args["includeDerivedMembership"] = True
    fetch = list_request(_get_service().members().list, groupKey=groupKey, maxResults=200, **args)
    return paginate(fetch, format_error_key(groupKey), "members", cap, cancel)

def insert(groupKey: str, member: dict, fields: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/members/insert
    """
    request = _get_service().members().insert(groupKey=groupKey, body=member, **optional(fields=fields))
    return execute(format_error_key(groupKey, member.get("email", "")), request)

def patch(groupKey: str, memberKey: str, member: dict, fields: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/members/patch
    """
    request = _get_service().members().patch(groupKey=groupKey, memberKey=memberKey,
                                             body=member, **optional(fields=fields))
    return execute(format_error_key(groupKey, memberKey), request)

def delete(groupKey: str, memberKey: str) -> bool:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/members/delete
    """
    request = _get_service().members().delete(groupKey=groupKey, memberKey=memberKey)
    return run_action(format_error_key(groupKey, memberKey), request.execute)
