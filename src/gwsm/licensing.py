import threading
from functools import partial

from .access import gws
from .errors import format_error_key
from .pager import Stream, list_request, paginate
from .resources import optional
from .retry import execute, run_action

_get_service = partial(gws.family, "licensing")

def list_for_product(productId: str, customerId: str, fields: str = "", cap: int = 0,
                     cancel: threading.Event|None = None) -> Stream[dict]:
    """
    https://developers.google.com/admin-sdk/licensing/reference/rest/v1/licenseAssignments/listForProduct
    customerId is the primary domain or the customer ID, 'my_customer' doesn't work here.
    """
    fetch = list_request(_get_service().licenseAssignments().listForProduct, productId=productId,
                         customerId=customerId, maxResults=1000, **optional(fields=fields))
    return paginate(fetch, format_error_key(productId, customerId), "items", cap, cancel)

def list_for_product_and_sku(productId: str, skuId: str, customerId: str, fields: str = "",
                             cap: int = 0, cancel: threading.Event|None = None) -> Stream[dict]:
    """
    https://developers.google.com/admin-sdk/licensing/reference/rest/v1/licenseAssignments/listForProductAndSku
    """
    fetch = list_request(_get_service().licenseAssignments().listForProductAndSku, productId=productId,
                         skuId=skuId, customerId=customerId, maxResults=1000, **optional(fields=fields))
    return paginate(fetch, format_error_key(productId, skuId, customerId), "items", cap, cancel)

def insert(productId: str, skuId: str, userId: str, fields: str = "") -> dict:
    """
    https://developers.google.com/admin-sdk/licensing/reference/rest/v1/licenseAssignments/insert
    """
    request = _get_service().licenseAssignments().insert(productId=productId, skuId=skuId,
                                                         body={"userId": userId}, **optional(fields=fields))
    return execute(format_error_key(productId, skuId, userId), request)

def delete(productId: str, skuId: str, userId: str) -> bool:
    """
    https://developers.google.com/admin-sdk/licensing/reference/rest/v1/licenseAssignments/delete
    """
    request = _get_service().licenseAssignments().delete(productId=productId, skuId=skuId, userId=userId)
    return run_action(format_error_key(productId, skuId, userId), request.execute)
