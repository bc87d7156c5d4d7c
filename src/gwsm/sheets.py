from functools import partial
from typing import Any, List

from .access import gws
from .errors import format_error_key
from .resources import optional
from .retry import execute

_get_service = partial(gws.family, "sheets")

_VALUE_INPUT = ["RAW", "USER_ENTERED"]

def get_spreadsheet(spreadsheetId: str, ranges: List[str]|None = None,
                    includeGridData: bool = False, fields: str = "") -> dict:
    """
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets/get
    """
    args = optional(fields=fields)
    if ranges:
        args["ranges"] = ranges
    request = _get_service().spreadsheets().get(spreadsheetId=spreadsheetId,
                                                includeGridData=includeGridData, **args)
    return execute(format_error_key(spreadsheetId), request)

def create_spreadsheet(title: str, sheets: List[str]|None = None, fields: str = "") -> dict:
    """
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets/create
    sheets are the titles of the tabs to create, the API adds 'Sheet1' otherwise.
    """
    body: dict[str,Any] = {"properties": {"title": title}}
    if sheets:
        body["sheets"] = [{"properties": {"title": s}} for s in sheets]
    request = _get_service().spreadsheets().create(body=body, **optional(fields=fields))
    return execute(format_error_key(title), request)

def get_values(spreadsheetId: str, range: str, majorDimension: str = "",
               valueRenderOption: str = "") -> List[List[Any]]:
    """
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets.values/get
    range is in A1 notation, e.g. 'Sheet1!A1:C10'.  Trailing empty cells and
    rows are not returned.
    """
    request = _get_service().spreadsheets().values().get(spreadsheetId=spreadsheetId, range=range, **optional(
        majorDimension=majorDimension, valueRenderOption=valueRenderOption))
    response = execute(format_error_key(spreadsheetId, range), request)
    return response.get("values", []) if response else []

def update_values(spreadsheetId: str, range: str, values: List[List[Any]],
                  valueInputOption: str = "USER_ENTERED") -> dict:
    """
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets.values/update
    """
    if valueInputOption not in _VALUE_INPUT:
        raise ValueError(f"Invalid values update() valueInputOption: {valueInputOption}")
    request = _get_service().spreadsheets().values().update(spreadsheetId=spreadsheetId, range=range,
                                                            valueInputOption=valueInputOption,
                                                            body={"range": range, "values": values})
    return execute(format_error_key(spreadsheetId, range), request)

def append_values(spreadsheetId: str, range: str, values: List[List[Any]],
                  valueInputOption: str = "USER_ENTERED", insertDataOption: str = "INSERT_ROWS") -> dict:
    """
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets.values/append
    Rows are appended after the table found in range.
    """
    if valueInputOption not in _VALUE_INPUT:
        raise ValueError(f"Invalid values append() valueInputOption: {valueInputOption}")
    if insertDataOption not in ["OVERWRITE", "INSERT_ROWS"]:
        raise ValueError(f"Invalid values append() insertDataOption: {insertDataOption}")
    request = _get_service().spreadsheets().values().append(spreadsheetId=spreadsheetId, range=range,
                                                            valueInputOption=valueInputOption,
                                                            insertDataOption=insertDataOption,
                                                            body={"values": values})
    return execute(format_error_key(spreadsheetId, range), request)

def clear_values(spreadsheetId: str, range: str) -> dict:
    """
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets.values/clear
    Only values are cleared, formatting stays.
    """
    request = _get_service().spreadsheets().values().clear(spreadsheetId=spreadsheetId, range=range, body={})
    return execute(format_error_key(spreadsheetId, range), request)
