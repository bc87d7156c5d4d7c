import logging
import threading
from typing import Iterable, List, Tuple

from ..pager import Stream
from ..settings import max_threads
from . import members, users

logger = logging.getLogger(__name__)

def unique_users(orgUnits: Iterable[str], groupEmails: Iterable[str], threads: int = 0,
                 strict: bool = False, cancel: threading.Event|None = None) -> Stream[str]:
    """
    Stream the primary email of every user in the given orgUnits (an orgUnit
    includes its children) and groups (memberships are resolved
    transitively, only USER members count), each address exactly once.

    OrgUnits and groups are enumerated by two threads in parallel feeding a
    third that drops duplicates.  By default this is best effort: a failing
    list call is logged and the enumeration carries on with the next
    orgUnit / group.  With strict the first failure becomes the stream error
    and the enumeration stops.
    """
    n = max_threads(threads)
    out: Stream[str] = Stream(n, cancel)
    # raw has its own event so a strict failure can stop the producers
    # without cancelling the caller's event
    raw: Stream[str] = Stream(n)

    def stopped() -> bool:
        if out.cancelled:
            raw.cancel.set()
        return raw.cancelled

    def forward(source: Stream[dict], pick, what: str) -> bool:
        for item in source:
            email = pick(item)
            if email and not raw.put(email):
                source.cancel.set()
                return False
        e = source.error()
        if e is None:
            return True
        if strict:
            out.fail(e)
            raw.cancel.set()
            return False
        logger.warning("skipping %s: %s", what, e)
        return True

    def org_units_stage():
        for ou in orgUnits:
            if stopped():
                return
            us = users.list(query=f"orgUnitPath={ou}", fields="users(primaryEmail),nextPageToken", cap=n)
            if not forward(us, lambda u: u.get("primaryEmail", ""), f"orgUnit {ou}"):
                return

    def groups_stage():
        for g in groupEmails:
            if stopped():
                return
            ms = members.list(g, fields="members(email,type),nextPageToken", includeDerivedMembership=True, cap=n)
            if not forward(ms, lambda m: m.get("email", "") if m.get("type", "") == "USER" else "", f"group {g}"):
                return

    def dedup():
        seen = set()
        for email in raw:
            if email in seen:
                continue
            seen.add(email)
            if not out.put(email):
                raw.cancel.set()
                break
        e = raw.error()
        if e is not None:
            out.fail(e)

    t_ou = raw.start(org_units_stage, close=False)
    t_groups = raw.start(groups_stage, close=False)

    def closer():
        t_ou.join()
        t_groups.join()

    raw.start(closer)
    out.start(dedup)
    return out

def members_to_set(groupKey: str, emails: Iterable[str], threads: int = 0) -> Tuple[List[str], List[str]]:
    """
    Compare the current (direct) members of a group with the wanted email
    addresses, case insensitively.
    Returns (to add, to remove).
    """
    current = [m.get("email", "").lower() for m in members.list(groupKey, fields="members(email),nextPageToken",
                                                                 cap=max_threads(threads)).list()]
    wanted = []
    for e in emails:
        e = e.lower()
        if e not in wanted:
            wanted.append(e)
    to_add = [e for e in wanted if e not in current]
    to_remove = [c for c in current if c not in wanted]
    return to_add, to_remove
