import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Iterable

from ..errors import GSMError
from ..pager import Stream
from ..settings import max_threads
from . import files
from .files import DriveFile

logger = logging.getLogger(__name__)

RECURSIVE_FIELDS = "files(id,name,mimeType,parents,size),nextPageToken"

@dataclass
class FolderSize():
    """Number of files and folders below a folder and the summed size of the files"""
    files: int = field(default=0)
    folders: int = field(default=0)
    size: int = field(default=0)

def get_folder(folderId: str) -> DriveFile:
    """
    The file with the given id, but only if it is a folder.
    """
    folder = files.get(folderId, fields="id,name,mimeType,parents,driveId")
    if not folder.is_folder():
        raise ValueError(f"{folderId} is not a folder")
    return folder

def list_files_recursive(folderId: str, fields: str = RECURSIVE_FIELDS,
                         excludeFolders: Iterable[str] = (), threads: int = 0,
                         cancel: threading.Event|None = None) -> Stream[DriveFile]:
    """
    Stream every file and folder below folderId (not the folder itself),
    skipping trashed items and the subtrees of excludeFolders.
    fields must include mimeType, id and nextPageToken.

    Folders are listed by a pool of threads.  A folder is always emitted
    before anything inside it.  A folder that fails to list is logged and
    its subtree is missing from the result.
    """
    n = max_threads(threads)
    out: Stream[DriveFile] = Stream(n, cancel)
    excluded = set(excludeFolders)
    pending: queue.Queue = queue.Queue()
    cv = threading.Condition()
    outstanding = [0]

    def add(id):
        with cv:
            outstanding[0] += 1
        pending.put(id)

    def done():
        with cv:
            outstanding[0] -= 1
            if outstanding[0] == 0:
                cv.notify_all()

    def worker():
        while True:
            id = pending.get()
            if id is None:
                return
            try:
                if out.cancelled:
                    continue
                children = files.list(q=f"'{id}' in parents and trashed = false", corpora="allDrives",
                                      fields=fields, cap=n, cancel=out.cancel)
                for f in children:
                    if f.is_folder():
                        if f.id in excluded:
                            continue
                        if not out.put(f):
                            break
                        add(f.id)
                    elif not out.put(f):
                        break
                err = children.error()
                if err is not None:
                    logger.error("listing folder %s: %s", id, err)
            except GSMError as e:
                logger.error("listing folder %s: %s", id, e)
            finally:
                done()

    def produce():
        add(folderId)
        workers = [threading.Thread(target=worker, daemon=True) for _ in range(n)]
        for w in workers:
            w.start()
        with cv:
            cv.wait_for(lambda: outstanding[0] == 0)
        for _ in workers:
            pending.put(None)
        for w in workers:
            w.join()

    out.start(produce)
    return out

def count_files_and_folders(items: Iterable[DriveFile]) -> FolderSize:
    """
    Count what comes out of e.g. list_files_recursive.  size needs to be in
    the requested fields for the byte count to mean anything.
    """
    s = FolderSize()
    for f in items:
        if f.is_folder():
            s.folders += 1
        else:
            s.files += 1
            s.size += f.size or 0
    return s

def _create_folder(parent: str, name: str) -> DriveFile:
    return files.create(DriveFile.folder(name, parent), fields="id,mimeType,name,parents")

def copy_folders_with_new_parents(folderId: str, destination: str, excludeFolders: Iterable[str] = (),
                                  threads: int = 0, cancel: threading.Event|None = None) -> Stream[DriveFile]:
    """
    Recreate the folder tree below folderId under destination.

    The returned stream carries, in tree order, each newly created folder
    (starting with the copy of folderId itself) and every file of the
    source tree with the id of its new parent folder appended to parents,
    ready to be copied or moved there.  Folders that can't be created are
    logged and their files are skipped.
    """
    root = get_folder(folderId)
    new_root = _create_folder(destination, root.name)
    n = max_threads(threads)
    out: Stream[DriveFile] = Stream(n, cancel)
    folder_map = {root.id: new_root.id}

    def produce():
        if not out.put(new_root):
            return
        items = list_files_recursive(folderId, "files(id,parents,mimeType,name),nextPageToken",
                                     excludeFolders, n, out.cancel)
        for i in items:
            parent = folder_map.get((i.parents or [""])[0], None)
            if parent is None:
                logger.warning("skipping %s, its parent folder was not copied", i)
                continue
            if i.is_folder():
                try:
                    new = _create_folder(parent, i.name)
                except GSMError as e:
                    logger.error("%s", e)
                    continue
                folder_map[i.id] = new.id
                if not out.put(new):
                    break
            else:
                i.parents = [*(i.parents or []), parent]
                if not out.put(i):
                    break
        err = items.error()
        if err is not None:
            out.fail(err)

    out.start(produce)
    return out
