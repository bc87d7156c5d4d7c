from functools import partial

from ..access import gws
from ..errors import format_error_key
from ..resources import optional
from ..retry import execute, run_action

_get_service = partial(gws.family, "admin")

def get(orgUnitPath: str, customerId: str = "my_customer", fields: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/orgunits/get
    The path is given without the leading slash, as the API expects.
    """
    path = orgUnitPath.lstrip("/")
    request = _get_service().orgunits().get(customerId=customerId, orgUnitPath=path, **optional(fields=fields))
    return execute(format_error_key(customerId, orgUnitPath), request)

def list(customerId: str = "my_customer", orgUnitPath: str = "", type: str = "",
         fields: str = "") -> list[dict]:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/orgunits/list
    This endpoint isn't paginated, everything comes back in one response.
    type is 'all', 'children' or 'allIncludingParent'.
    """
    if type and type not in ["all", "children", "allIncludingParent"]:
        raise ValueError(f"Invalid orgunits list() type: {type}")
    request = _get_service().orgunits().list(customerId=customerId, **optional(
        orgUnitPath=orgUnitPath, type=type, fields=fields))
    response = execute(format_error_key(customerId, orgUnitPath), request)
    return response.get("organizationUnits", []) if response else []

def insert(orgUnit: dict, customerId: str = "my_customer", fields: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/orgunits/insert
    """
    request = _get_service().orgunits().insert(customerId=customerId, body=orgUnit, **optional(fields=fields))
    return execute(format_error_key(customerId, orgUnit.get("name", "")), request)

def delete(orgUnitPath: str, customerId: str = "my_customer") -> bool:
    """
    https://developers.google.com/admin-sdk/directory/reference/rest/v1/orgunits/delete
    """
    request = _get_service().orgunits().delete(customerId=customerId, orgUnitPath=orgUnitPath.lstrip("/"))
    return run_action(format_error_key(customerId, orgUnitPath), request.execute)
