# ABOUTME: Authorization rules for novels and everything scoped under them.
# ABOUTME: Pure functions: draft visibility and ownership, plus a single authorize() check.

from enum import Enum

from novella.store.errors import ForbiddenError
from novella.store.types import Novel


class Access(Enum):
    """What a requester wants to do with a novel or its contents."""

    VIEW = "view"
    OWN = "own"


def is_author(novel: Novel, requester_id: int | None) -> bool:
    """Whether the requester is the novel's author. Anonymous never is."""
    return bool(requester_id) and novel.author_id == requester_id


def can_view(novel: Novel, requester_id: int | None) -> bool:
    """Draft-visibility rule.

    A published novel and its chapters, comments and bookmarks are visible
    to anyone, authenticated or not. A draft is visible only to its author.
    """
    return novel.is_published or is_author(novel, requester_id)


def can_modify(novel: Novel, requester_id: int | None) -> bool:
    """Ownership rule: only the author creates, updates or deletes a novel or its chapters."""
    return is_author(novel, requester_id)


def authorize(novel: Novel, requester_id: int | None, access: Access) -> None:
    """Raise ForbiddenError unless the requester has the given access.

    The caller has already confirmed the novel exists. The message is the
    same whether the novel is a draft or someone else's published work, so
    it never reveals draft content to a non-author.
    """
    if access is Access.OWN:
        allowed = can_modify(novel, requester_id)
    else:
        allowed = can_view(novel, requester_id)
    if not allowed:
        raise ForbiddenError(f"Not permitted to {access.value} novel {novel.id}")
