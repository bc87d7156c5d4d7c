"""
Move a folder tree into another location (typically a shared drive).

Drive can't move folders across drives, so the folder hierarchy is cloned
under the destination and every file is reparented into its folder's clone:

    folders queue ──> folder thread ──(clone folder, list children)──> pc queue
         ^                                                               │
         └──────────── sub-folders ──── N worker threads <───────────────┘
                                              │
                                       files: update(addParents=clone,
                                                     removeParents=source)

A folder's clone always exists before anything inside it is touched.
Files are reparented in no particular order.
"""

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Dict, List

from ..errors import GSMError
from ..retry import MIGRATION_POLICY, RetryPolicy
from ..settings import MAX_THREADS
from . import files, special
from .files import DriveFile

logger = logging.getLogger(__name__)

DEFAULT_THREADS = 10
CHILD_FIELDS = "files(id,name,mimeType,parents),nextPageToken"

_STOP = object()

@dataclass
class ParentChildren():
    """
    The children of source_parent, waiting to be moved under new_parent
    (source_parent's clone).
    """
    new_parent: str
    source_parent: str
    children: List[DriveFile] = field(default_factory=list)

class FolderMap():
    """
    Source folder id -> id of its clone.
    Only ever grows during a migration, mapping a folder twice is an error.
    """

    def __init__(self) -> None:
        self.__lock = threading.Lock()
        self.__map: Dict[str,str] = {}

    def __len__(self) -> int:
        with self.__lock:
            return len(self.__map)

    def __contains__(self, source: str) -> bool:
        with self.__lock:
            return source in self.__map

    def __getitem__(self, source: str) -> str:
        with self.__lock:
            return self.__map[source]

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{len(self)}"

    def get(self, source: str, default: str|None = None) -> str|None:
        with self.__lock:
            return self.__map.get(source, default)

    def set(self, source: str, destination: str) -> None:
        with self.__lock:
            if source in self.__map:
                raise ValueError(f"folder {source} is already mapped to {self.__map[source]}")
            self.__map[source] = destination

    def items(self) -> Dict[str,str]:
        """A copy of the current mapping"""
        with self.__lock:
            return dict(self.__map)

class _Migration():
    """State shared by the threads of one migrate() call"""

    def __init__(self, destination: str, drive_id: str, threads: int,
                 cancel: threading.Event, policy: RetryPolicy) -> None:
        self.destination = destination
        self.drive_id = drive_id
        self.threads = threads
        self.cancel = cancel
        self.policy = policy
        self.folder_map = FolderMap()
        # work items are (new parent, source folder)
        self.folders: queue.Queue = queue.Queue()
        self.pc: queue.Queue = queue.Queue(maxsize=threads)
        self.cv = threading.Condition()
        self.outstanding = 0

    def add_folder(self, parent: str, folder: DriveFile) -> None:
        with self.cv:
            self.outstanding += 1
        self.folders.put((parent, folder))

    def add_children(self, pc: ParentChildren) -> None:
        with self.cv:
            self.outstanding += 1
        self.pc.put(pc)

    def done(self) -> None:
        with self.cv:
            self.outstanding -= 1
            if self.outstanding == 0:
                self.cv.notify_all()

    def wait(self) -> None:
        with self.cv:
            self.cv.wait_for(lambda: self.outstanding == 0)

    def clone_folder(self, parent: str, folder: DriveFile) -> None:
        """
        Create folder's clone under parent and hand its children to the
        workers.  Failures are logged and the folder's subtree is skipped.
        """
        try:
            new = files.create(DriveFile.folder(folder.name, parent, self.drive_id or None),
                               fields="id,name,mimeType", policy=self.policy)
        except GSMError as e:
            logger.error("creating clone of %s: %s", folder, e)
            return
        try:
            self.folder_map.set(folder.id, new.id)
        except ValueError as e:
            # a folder with several parents inside the tree is reached twice
            logger.error("%s", e)
            return
        logger.info("%s's new id is %s", folder.name, new.id)
        if self.cancel.is_set():
            return
        children = files.list(q=f"'{folder.id}' in parents", fields=CHILD_FIELDS,
                              policy=self.policy, cancel=self.cancel)
        items = [c for c in children]
        err = children.error()
        if err is not None:
            logger.error("listing children of %s: %s", folder, err)
            return
        if items:
            self.add_children(ParentChildren(new.id, folder.id, items))

    def move_file(self, file: DriveFile, new_parent: str, source_parent: str) -> None:
        # only the parent being migrated is removed, other parents stay
        try:
            files.update(file.id, addParents=new_parent, removeParents=source_parent,
                         fields="id,parents", policy=self.policy)
        except GSMError as e:
            logger.error("moving %s to %s: %s", file, new_parent, e)

    def folder_loop(self) -> None:
        while True:
            item = self.folders.get()
            if item is _STOP:
                return
            try:
                if not self.cancel.is_set():
                    self.clone_folder(*item)
            except GSMError as e:
                logger.error("%s", e)
            finally:
                self.done()

    def worker_loop(self, i: int) -> None:
        while True:
            p = self.pc.get()
            if p is _STOP:
                return
            try:
                logger.info("%d is moving %d children to %s", i, len(p.children), p.new_parent)
                for c in p.children:
                    if self.cancel.is_set():
                        break
                    if c.is_folder():
                        self.add_folder(p.new_parent, c)
                    else:
                        self.move_file(c, p.new_parent, p.source_parent)
                logger.info("%d has moved %d children to %s", i, len(p.children), p.new_parent)
            finally:
                self.done()

    def run(self, source: DriveFile) -> FolderMap:
        self.add_folder(self.destination, source)
        threads = [threading.Thread(target=self.folder_loop, daemon=True)]
        threads += [threading.Thread(target=self.worker_loop, args=(i,), daemon=True) for i in range(self.threads)]
        for t in threads:
            t.start()
        self.wait()
        # nothing is outstanding so both queues are empty and every thread is idle
        self.folders.put(_STOP)
        for _ in range(self.threads):
            self.pc.put(_STOP)
        for t in threads:
            t.join()
        return self.folder_map

def migrate(source_folder: DriveFile|str, destination: str, drive_id: str = "",
            threads: int = DEFAULT_THREADS, cancel: threading.Event|None = None,
            policy: RetryPolicy = MIGRATION_POLICY) -> FolderMap:
    """
    Clone source_folder (a folder DriveFile, or its id) and its folder tree
    under destination and move every file below it into the matching clone.
    drive_id is the shared drive the destination lives in, if any.
    threads is the number of workers moving files, 10 unless given, 16 at most.
    Trashed files are moved as well.

    Every API call uses the migration retry policy, 403s are retried with a
    long backoff, everything else is logged and that folder / file is skipped.
    With cancel set no new work is started, the call returns once the work
    in flight has drained.
    Returns the source -> clone folder id mapping.
    """
    source = special.get_folder(source_folder) if isinstance(source_folder, str) else source_folder
    if not source.is_folder():
        raise ValueError(f"{source} is not a folder")
    n = min(threads if threads and threads > 0 else DEFAULT_THREADS, MAX_THREADS)
    m = _Migration(destination, drive_id, n, cancel if cancel is not None else threading.Event(), policy)
    logger.info("migrating %s to %s", source, destination)
    m.run(source)
    logger.info("migrated %s, %d folders cloned", source, len(m.folder_map))
    return m.folder_map
