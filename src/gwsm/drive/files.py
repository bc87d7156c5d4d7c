import threading
from dataclasses import dataclass, field
from functools import partial
from typing import List, Self

from ..access import gws
from ..errors import format_error_key
from ..pager import Stream, list_request, paginate
from ..resources import GoogleWorkSpaceResourceBase, optional
from ..retry import RetryPolicy, run_action, run_value

_get_service = partial(gws.family, "drive")

FOLDER_MIMETYPE = "application/vnd.google-apps.folder"

@dataclass
class DriveFile(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/drive/api/reference/rest/v3/files#File
    Only the handful of fields the folder handling needs, everything else
    stays in the raw response.  As with the other resources None means
    'not set' and is trimmed out of request bodies.
    """
    kind: str|None = field(default=None)
    id: str|None = field(default=None)
    name: str|None = field(default=None)
    mimeType: str|None = field(default=None)
    driveId: str|None = field(default=None)
    parents: List[str]|None = field(default=None)
    size: int|str|None = field(default=None)
    trashed: bool|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        # the API sends int64 as strings
        if self.size is not None and not isinstance(self.size, int):
            self.size = int(self.size)

    def __bool__(self) -> bool:
        return bool(self.id)

    def __str__(self) -> str:
        if self:
            return f"{self.name}<{self.id}>"
        return "<empty>"

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    def is_folder(self) -> bool:
        """Only meaningful if mimeType was requested"""
        return self.mimeType == FOLDER_MIMETYPE

    @classmethod
    def folder(cls, name: str, parent: str, driveId: str|None = None) -> Self:
        return cls(name=name, mimeType=FOLDER_MIMETYPE, parents=[parent], driveId=driveId)

def _body(file: DriveFile|dict|None) -> dict:
    if file is None:
        return {}
    return file.trim() if isinstance(file, DriveFile) else dict(file)

def get(fileId: str, fields: str = "", policy: RetryPolicy|None = None) -> DriveFile:
    """
    https://developers.google.com/drive/api/reference/rest/v3/files/get
    """
    request = _get_service().files().get(fileId=fileId, supportsAllDrives=True, **optional(fields=fields))
    return DriveFile.from_api(run_value(format_error_key(fileId), request.execute, policy))

def list(q: str = "", driveId: str = "", corpora: str = "", orderBy: str = "",
         spaces: str = "", fields: str = "", includeItemsFromAllDrives: bool = True,
         cap: int = 0, cancel: threading.Event|None = None,
         policy: RetryPolicy|None = None) -> Stream[DriveFile]:
    """
    https://developers.google.com/drive/api/reference/rest/v3/files/list
    Streams DriveFile objects, 1000 per page.  When fields is given it must
    include nextPageToken or only the first page is read.
    """
    if corpora and corpora not in ["user", "drive", "domain", "allDrives"]:
        raise ValueError(f"Invalid files list() corpora: {corpora}")
    args = optional(q=q, driveId=driveId, corpora=corpora, orderBy=orderBy, spaces=spaces, fields=fields)
    fetch = list_request(_get_service().files().list, pageSize=1000, supportsAllDrives=True,
                         includeItemsFromAllDrives=includeItemsFromAllDrives, **args)
    return paginate(fetch, format_error_key(q or driveId or "files"), "files", cap, cancel,
                    factory=DriveFile.from_api, policy=policy)

def create(file: DriveFile|dict, fields: str = "", ignoreDefaultVisibility: bool = False,
           keepRevisionForever: bool = False, policy: RetryPolicy|None = None) -> DriveFile:
    """
    https://developers.google.com/drive/api/reference/rest/v3/files/create
    Metadata only, which is all folders need.
    """
    body = _body(file)
    request = _get_service().files().create(body=body, supportsAllDrives=True,
                                            ignoreDefaultVisibility=ignoreDefaultVisibility,
                                            keepRevisionForever=keepRevisionForever, **optional(fields=fields))
    return DriveFile.from_api(run_value(format_error_key(body.get("name", "")), request.execute, policy))

def update(fileId: str, file: DriveFile|dict|None = None, addParents: str = "",
           removeParents: str = "", fields: str = "", policy: RetryPolicy|None = None) -> DriveFile:
    """
    https://developers.google.com/drive/api/reference/rest/v3/files/update
    addParents / removeParents are comma separated folder IDs; this is how a
    file is moved.
    """
    request = _get_service().files().update(fileId=fileId, body=_body(file), supportsAllDrives=True,
                                            **optional(addParents=addParents, removeParents=removeParents,
                                                       fields=fields))
    return DriveFile.from_api(run_value(format_error_key(fileId), request.execute, policy))

def delete(fileId: str, policy: RetryPolicy|None = None) -> bool:
    """
    https://developers.google.com/drive/api/reference/rest/v3/files/delete
    Permanent, skips the trash.
    """
    request = _get_service().files().delete(fileId=fileId, supportsAllDrives=True)
    return run_action(format_error_key(fileId), request.execute, policy)

def copy(fileId: str, file: DriveFile|dict|None = None, fields: str = "",
         ignoreDefaultVisibility: bool = False, keepRevisionForever: bool = False,
         policy: RetryPolicy|None = None) -> DriveFile:
    """
    https://developers.google.com/drive/api/reference/rest/v3/files/copy
    Folders cannot be copied.
    """
    request = _get_service().files().copy(fileId=fileId, body=_body(file), supportsAllDrives=True,
                                          ignoreDefaultVisibility=ignoreDefaultVisibility,
                                          keepRevisionForever=keepRevisionForever, **optional(fields=fields))
    return DriveFile.from_api(run_value(format_error_key(fileId), request.execute, policy))
