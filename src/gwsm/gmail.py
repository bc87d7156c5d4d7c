from functools import partial
from typing import List

from .access import gws
from .errors import format_error_key
from .resources import optional
from .retry import execute, run_action

_get_service = partial(gws.family, "gmail")

# none of the settings / labels endpoints used here are paginated

def list_labels(userId: str = "me", fields: str = "") -> List[dict]:
    """
    https://developers.google.com/gmail/api/reference/rest/v1/users.labels/list
    """
    request = _get_service().users().labels().list(userId=userId, **optional(fields=fields))
    response = execute(format_error_key(userId), request)
    return response.get("labels", []) if response else []

def create_label(label: dict, userId: str = "me", fields: str = "") -> dict:
    """
    https://developers.google.com/gmail/api/reference/rest/v1/users.labels/create
    """
    request = _get_service().users().labels().create(userId=userId, body=label, **optional(fields=fields))
    return execute(format_error_key(userId, label.get("name", "")), request)

def delete_label(id: str, userId: str = "me") -> bool:
    """
    https://developers.google.com/gmail/api/reference/rest/v1/users.labels/delete
    """
    request = _get_service().users().labels().delete(userId=userId, id=id)
    return run_action(format_error_key(userId, id), request.execute)

def list_delegates(userId: str = "me", fields: str = "") -> List[dict]:
    """
    https://developers.google.com/gmail/api/reference/rest/v1/users.settings.delegates/list
    """
    request = _get_service().users().settings().delegates().list(userId=userId, **optional(fields=fields))
    response = execute(format_error_key(userId), request)
    return response.get("delegates", []) if response else []

def create_delegate(delegateEmail: str, userId: str = "me", fields: str = "") -> dict:
    """
    https://developers.google.com/gmail/api/reference/rest/v1/users.settings.delegates/create
    Needs a service account with domain wide delegation.
    """
    request = _get_service().users().settings().delegates().create(
        userId=userId, body={"delegateEmail": delegateEmail}, **optional(fields=fields))
    return execute(format_error_key(userId, delegateEmail), request)

def delete_delegate(delegateEmail: str, userId: str = "me") -> bool:
    """
    https://developers.google.com/gmail/api/reference/rest/v1/users.settings.delegates/delete
    """
    request = _get_service().users().settings().delegates().delete(userId=userId, delegateEmail=delegateEmail)
    return run_action(format_error_key(userId, delegateEmail), request.execute)

def list_send_as(userId: str = "me", fields: str = "") -> List[dict]:
    """
    https://developers.google.com/gmail/api/reference/rest/v1/users.settings.sendAs/list
    """
    request = _get_service().users().settings().sendAs().list(userId=userId, **optional(fields=fields))
    response = execute(format_error_key(userId), request)
    return response.get("sendAs", []) if response else []
