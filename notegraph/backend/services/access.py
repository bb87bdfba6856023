"""
Note Access Policy.

Pure decisions about who may read and who may write a note. No I/O,
never raises from the predicates. The ``ensure_*`` helpers translate a
denial into the application error taxonomy:

    existence -> readability (404) -> writability (403)

A note the requester cannot read is reported as missing so that private
notes do not disclose their existence. Writes are owner-only.

The same read rule is applied in SQL by ``repositories.note.readable_by``.
"""

from typing import Protocol

from notegraph.backend.core.exceptions import AuthorizationError, NotFoundError


class OwnedNote(Protocol):
    owner_id: str
    is_private: bool


class Requester(Protocol):
    id: str


def can_read(note: OwnedNote, requester: Requester | None) -> bool:
    """Public notes are readable by anyone; private notes by their owner only."""
    if not note.is_private:
        return True
    return requester is not None and requester.id == note.owner_id


def can_write(note: OwnedNote, requester: Requester | None) -> bool:
    """Only the owner writes. Anonymous requesters never do."""
    return requester is not None and requester.id == note.owner_id


def ensure_readable(note: OwnedNote | None, requester: Requester | None) -> OwnedNote:
    """Return ``note`` or raise NotFoundError when it is absent or hidden."""
    if note is None or not can_read(note, requester):
        raise NotFoundError("Note not found")
    return note


def ensure_writable(note: OwnedNote | None, requester: Requester | None) -> OwnedNote:
    """Apply the read check first, then raise AuthorizationError on a non-owner."""
    ensure_readable(note, requester)
    if not can_write(note, requester):
        raise AuthorizationError("You do not have permission to modify this note")
    return note
