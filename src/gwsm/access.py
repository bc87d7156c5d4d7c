import threading
from functools import wraps

from googleapiclient.discovery import build, Resource

from .errors import TransportNotSetError

# family key -> (api name, version) as understood by googleapiclient.discovery.build
FAMILIES = {
    "admin": ("admin", "directory_v1"),
    "reports": ("admin", "reports_v1"),
    "cloudidentity": ("cloudidentity", "v1"),
    "cloudidentity-beta": ("cloudidentity", "v1beta1"),
    "drive": ("drive", "v3"),
    "drivelabels": ("drivelabels", "v2"),
    "gmail": ("gmail", "v1"),
    "gmailpostmastertools": ("gmailpostmastertools", "v1"),
    "groupssettings": ("groupssettings", "v1"),
    "licensing": ("licensing", "v1"),
    "calendar": ("calendar", "v3"),
    "people": ("people", "v1"),
    "sheets": ("sheets", "v4"),
}

class GWSAccess():
    """
    Registry of Google Workspace API services bound to one transport.

    The transport is whatever performs authenticated HTTP requests, normally
    a ThreadLocalHttp or google_auth_httplib2.AuthorizedHttp from gwsm.auth.
    It is injected once at startup and every service built afterwards uses it.

    It makes no sense to have multiple authenticated sessions per application
    so this is used as a module singleton (gws) and the service retrieval is
    offered as a decorator as well.  Services are built lazily on first use
    of a family, under a lock so concurrent first callers get the same handle.
    """

    def __init__(self) -> None:
        self.__lock = threading.Lock()
        self.reset()

    def __bool__(self) -> bool:
        """True if a transport has been injected"""
        return self.__transport is not None

    def __str__(self) -> str:
        if self:
            return f"Connected:{sorted(self.__services)}"
        return "Disconnected"

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    @property
    def transport(self):
        return self.__transport

    def set_transport(self, transport) -> None:
        """
        Inject the HTTP transport.
        A different transport invalidates every service built so far as
        handles are bound to the transport they were built with.
        """
        if transport is None:
            raise ValueError("transport must not be None")
        with self.__lock:
            if transport is not self.__transport:
                self.__services = {}
                self.__transport = transport

    @property
    def services(self) -> dict[str,Resource]:
        """
        Current active services.  Can be empty.
        """
        return dict(self.__services)

    def reset(self) -> None:
        """
        Drop the transport and all services.
        """
        with self.__lock:
            self.__transport = None
            self.__services = {}

    def get_service(self, name: str, version: str) -> Resource:
        """
        Build the requested service if not already available.
        Raises TransportNotSetError if no transport was injected.
        """
        if self.__transport is None:
            raise TransportNotSetError(f"no transport set for {name}:{version}, call gws.set_transport() first")
        id = f'{name}:{version}'
        s = self.__services.get(id, None)
        if s is None:
            with self.__lock:
                s = self.__services.get(id, None)
                if s is None:
                    s = build(name, version, http=self.__transport, cache_discovery=False)
                    self.__services[id] = s
        return s

    def family(self, key: str) -> Resource:
        """
        Get a service by family key, see FAMILIES.
        """
        try:
            name, version = FAMILIES[key]
        except KeyError:
            raise ValueError(f"Unknown API family: {key}") from None
        return self.get_service(name, version)

gws = GWSAccess()

def set_transport(transport) -> None:
    gws.set_transport(transport)

def service(key: str):
    """
    Simple decorator to deliver the required service to a function that
    needs access to a GWS service to build a request.
    param: key: family key from FAMILIES
    """
    def _inner_decorator(f):
        @wraps(f)
        def wrapped(*args,**kwargs):
            kwargs['service'] = gws.family(key)
            return f(*args, **kwargs)
        return wrapped
    return _inner_decorator
