"""Viewer relationship to a subscription."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, Optional


class Role(str, Enum):
    OWNER_SINGLE = "owner_single"
    OWNER_MANAGED = "owner_managed"
    OWNER_GIFTED = "owner_gifted"
    MEMBER_SHARED = "member_shared"
    MEMBER_GIFTED_RECIPIENT = "member_gifted_recipient"
    UNKNOWN = "unknown"


class Section(str, Enum):
    PRIMARY = "primary"
    GIFTED = "gifted"
    SHARED = "shared"


# UNKNOWN has no section: such rows are never displayed.
ROLE_SECTIONS: Dict[Role, Optional[Section]] = {
    Role.OWNER_SINGLE: Section.PRIMARY,
    Role.OWNER_MANAGED: Section.PRIMARY,
    Role.OWNER_GIFTED: Section.GIFTED,
    Role.MEMBER_SHARED: Section.SHARED,
    Role.MEMBER_GIFTED_RECIPIENT: Section.SHARED,
    Role.UNKNOWN: None,
}

ROLE_LABELS: Dict[Role, Optional[str]] = {
    Role.OWNER_SINGLE: "Single",
    Role.OWNER_MANAGED: "Managed",
    Role.OWNER_GIFTED: "Gifted",
    Role.MEMBER_SHARED: "Shared",
    Role.MEMBER_GIFTED_RECIPIENT: "Gifted",
    Role.UNKNOWN: None,
}

# (is_owner, viewer_active, owner_active) -> role, for every combination.
_DECISION_TABLE: Dict[tuple[bool, bool, bool], Role] = {
    (True, True, True): Role.OWNER_SINGLE,  # refined to MANAGED by member count
    (True, False, False): Role.OWNER_GIFTED,
    (False, True, True): Role.MEMBER_SHARED,
    (False, True, False): Role.MEMBER_GIFTED_RECIPIENT,
    (False, False, True): Role.UNKNOWN,
    (False, False, False): Role.UNKNOWN,
}


def classify_role(owner_id: Optional[str], active_ids: Iterable[str], viewer_id: Optional[str]) -> Role:
    if not viewer_id:
        return Role.UNKNOWN
    active = list(active_ids)
    is_owner = owner_id is not None and viewer_id == owner_id
    if is_owner and not active:
        # An owner who named no active members uses the subscription alone.
        active = [viewer_id]

    viewer_active = viewer_id in active
    owner_active = owner_id is not None and owner_id in active
    role = _DECISION_TABLE[(is_owner, viewer_active, owner_active)]
    if role is Role.OWNER_SINGLE and len(active) > 1:
        return Role.OWNER_MANAGED
    return role


def role_section(role: Role) -> Optional[Section]:
    return ROLE_SECTIONS[role]


def role_label(role: Role) -> Optional[str]:
    return ROLE_LABELS[role]


ACCOUNT_MANAGER = "Account Manager"
SHARED_MEMBER = "Shared Member"
GIFTED_MEMBER = "Gifted Member"


def account_type(owner_id: Optional[str], active_ids: Iterable[str], viewer_id: Optional[str]) -> Optional[str]:
    """Three-way label shown on the customer dashboard."""
    if not viewer_id:
        return None
    active = list(active_ids)
    if owner_id is not None and viewer_id == owner_id:
        return ACCOUNT_MANAGER
    if viewer_id in active:
        owner_active = owner_id is not None and owner_id in active
        return SHARED_MEMBER if owner_active else GIFTED_MEMBER
    return None
