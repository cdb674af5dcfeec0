"""Candidate key registry: historical field-name aliases per relationship role.

Stored records have accumulated many names for the same relationship over the
years (``assigneeId``, ``assignedUID``, ``employeeId`` ...). Every alias list
below is ordered; the first entry is the primary (currently written) field.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from worklens.domain.model import EntityKind, IdentityComponent, MatcherKind, RelationshipRole

if TYPE_CHECKING:
    from collections.abc import Iterable

R = RelationshipRole
ID = IdentityComponent.ID
EMAIL = IdentityComponent.EMAIL
NAME = IdentityComponent.DISPLAY_NAME


@dataclass(frozen=True, slots=True)
class RoleBinding:
    """How one relationship role is stored on a raw record."""

    role: RelationshipRole
    component: IdentityComponent
    matcher: MatcherKind
    aliases: tuple[str, ...]
    ignore_case: bool = False

    def __post_init__(self) -> None:
        if not self.aliases:
            raise ValueError(f"Role {self.role} requires at least one alias")

    @property
    def primary_alias(self) -> str:
        return self.aliases[0]

    @property
    def is_array(self) -> bool:
        return self.matcher in (MatcherKind.ARRAY_CONTAINS, MatcherKind.ARRAY_OF_OBJECTS_CONTAINS)


NESTED_IDENTITY_KEYS: Final[tuple[str, ...]] = (
    "uid",
    "id",
    "userId",
    "userID",
    "userUid",
    "userUID",
    "employeeId",
    "employeeID",
    "employeeUid",
    "employeeUID",
    "email",
    "userEmail",
    "employeeEmail",
    "name",
    "displayName",
)


def _exact(role: RelationshipRole, component: IdentityComponent, *aliases: str) -> RoleBinding:
    matcher = MatcherKind.EXACT if component is ID else MatcherKind.CASE_INSENSITIVE_EXACT
    return RoleBinding(role, component, matcher, aliases, ignore_case=component is not ID)


def _array(role: RelationshipRole, component: IdentityComponent, *aliases: str) -> RoleBinding:
    return RoleBinding(
        role, component, MatcherKind.ARRAY_CONTAINS, aliases, ignore_case=component is not ID
    )


def _objects(role: RelationshipRole, component: IdentityComponent, *aliases: str) -> RoleBinding:
    return RoleBinding(
        role,
        component,
        MatcherKind.ARRAY_OF_OBJECTS_CONTAINS,
        aliases,
        ignore_case=component is not ID,
    )


_PROJECT_MEMBER_ARRAYS = (
    "assignedEmployees",
    "assignedEmployeeIds",
    "assignedUids",
    "members",
    "teamMembers",
    "employeeUids",
    "employeeIds",
    "assignees",
    "participants",
    "employees",
    "assigneeIds",
)
_PROJECT_EMAIL_ARRAYS = (
    "assignedEmployeeEmails",
    "assignedEmails",
    "members",
    "teamMembers",
    "employees",
    "assignees",
    "participants",
    "emails",
    "assignedEmployees",
)

_BINDINGS: tuple[RoleBinding, ...] = (
    # tasks
    _exact(
        R.ASSIGNEE_BY_ID, ID, "assigneeId", "assignedId", "assignedUID", "assignedUid", "employeeId"
    ),
    _array(
        R.ASSIGNEE_ARRAY_BY_ID,
        ID,
        "assignedIds", "assignedUIDs", "assignedUids", "assigneeIds", "employeeIds",
    ),
    _exact(R.CLIENT_BY_ID, ID, "clientId", "clientUid", "clientUID"),
    _exact(R.CREATOR_BY_ID, ID, "createdByUid"),
    _exact(R.ASSIGNEE_BY_EMAIL, EMAIL, "assignedEmail", "assigneeEmail"),
    _exact(R.CLIENT_BY_EMAIL, EMAIL, "clientEmail"),
    _exact(R.CREATOR_BY_EMAIL, EMAIL, "createdByEmail"),
    _exact(
        R.ASSIGNEE_BY_NAME,
        NAME,
        "assigneeName", "assignedName", "assignedEmployeeName", "employeeName",
    ),
    _array(R.ASSIGNEE_ARRAY_BY_NAME, NAME, "assignedNames", "assigneeNames"),
    _exact(R.CREATOR_BY_NAME, NAME, "createdByName"),
    _exact(
        R.CLIENT_BY_NAME,
        NAME,
        "clientName", "ClientName", "cLientName", "customerName", "client",
    ),
    # self tasks
    _exact(R.SELF_OWNER_BY_ID, ID, "userUid", "userUID"),
    _exact(R.SELF_OWNER_BY_EMAIL, EMAIL, "userEmail"),
    # projects
    _exact(
        R.MEMBER_BY_ID,
        ID,
        "assignedId",
        "assignedUID",
        "assignedUid",
        "employeeId",
        "ownerUid",
        "createdByUid",
        "managerUid",
        "leadUid",
        "employeeUid",
        "assigneeId",
    ),
    _array(R.MEMBER_ARRAY_BY_ID, ID, *_PROJECT_MEMBER_ARRAYS),
    _objects(R.MEMBER_OBJECTS_BY_ID, ID, *_PROJECT_MEMBER_ARRAYS),
    _exact(
        R.MEMBER_BY_EMAIL,
        EMAIL,
        "assignedEmail",
        "ownerEmail",
        "createdByEmail",
        "managerEmail",
        "leadEmail",
        "employeeEmail",
        "assigneeEmail",
    ),
    _array(R.MEMBER_ARRAY_BY_EMAIL, EMAIL, *_PROJECT_EMAIL_ARRAYS),
    _objects(R.MEMBER_OBJECTS_BY_EMAIL, EMAIL, *_PROJECT_EMAIL_ARRAYS),
    _exact(
        R.LEAD_BY_NAME,
        NAME,
        "projectManager", "projectManagerName", "manager", "managerName", "lead", "leadName",
    ),
    _array(
        R.MEMBER_ARRAY_BY_NAME,
        NAME,
        "assignedEmployees", "assigneeNames", "members", "teamMembers", "employees", "assignees",
    ),
    _exact(
        R.CUSTOMER_BY_ID,
        ID,
        "clientUid", "clientUID", "clientId", "customerUid", "customerUID", "customerId",
    ),
    _exact(R.CUSTOMER_BY_EMAIL, EMAIL, "clientEmail", "customerEmail"),
    # meetings
    _exact(
        R.ORGANIZER_BY_ID,
        ID,
        "createdByUid",
        "ownerUid",
        "employeeUid",
        "employeeId",
        "organizerUid",
        "assigneeId",
        "assignedUid",
        "assignedUID",
    ),
    _array(R.ATTENDEE_ARRAY_BY_ID, ID, "assignedUids", "members", "teamMembers", "attendeeIds"),
    _exact(
        R.ORGANIZER_BY_EMAIL,
        EMAIL,
        "createdByEmail", "ownerEmail", "employeeEmail", "organizerEmail", "clientEmail",
    ),
    _array(R.ATTENDEE_ARRAY_BY_EMAIL, EMAIL, "participants", "attendees"),
    _objects(R.ATTENDEE_OBJECTS_BY_EMAIL, EMAIL, "participants", "attendees"),
)

ROLE_BINDINGS: Mapping[RelationshipRole, RoleBinding] = MappingProxyType(
    {binding.role: binding for binding in _BINDINGS}
)

_TASK_ROLES: tuple[RelationshipRole, ...] = (
    R.ASSIGNEE_BY_ID,
    R.ASSIGNEE_ARRAY_BY_ID,
    R.CLIENT_BY_ID,
    R.CREATOR_BY_ID,
    R.ASSIGNEE_BY_EMAIL,
    R.CLIENT_BY_EMAIL,
    R.CREATOR_BY_EMAIL,
    R.ASSIGNEE_BY_NAME,
    R.ASSIGNEE_ARRAY_BY_NAME,
    R.CREATOR_BY_NAME,
    R.CLIENT_BY_NAME,
)

ROLES_BY_KIND: Mapping[EntityKind, tuple[RelationshipRole, ...]] = MappingProxyType(
    {
        EntityKind.TASK: _TASK_ROLES,
        EntityKind.SELF_TASK: (*_TASK_ROLES, R.SELF_OWNER_BY_ID, R.SELF_OWNER_BY_EMAIL),
        EntityKind.PROJECT: (
            R.MEMBER_BY_ID,
            R.MEMBER_ARRAY_BY_ID,
            R.MEMBER_OBJECTS_BY_ID,
            R.CUSTOMER_BY_ID,
            R.MEMBER_BY_EMAIL,
            R.MEMBER_ARRAY_BY_EMAIL,
            R.MEMBER_OBJECTS_BY_EMAIL,
            R.CUSTOMER_BY_EMAIL,
            R.LEAD_BY_NAME,
            R.MEMBER_ARRAY_BY_NAME,
            R.CLIENT_BY_NAME,
        ),
        EntityKind.MEETING: (
            R.ORGANIZER_BY_ID,
            R.ATTENDEE_ARRAY_BY_ID,
            R.ORGANIZER_BY_EMAIL,
            R.ATTENDEE_ARRAY_BY_EMAIL,
            R.ATTENDEE_OBJECTS_BY_EMAIL,
            R.CLIENT_BY_NAME,
        ),
    }
)


def binding_for(role: RelationshipRole) -> RoleBinding:
    return ROLE_BINDINGS[role]


def roles_for(kind: EntityKind) -> tuple[RelationshipRole, ...]:
    return ROLES_BY_KIND[kind]


def bindings_for_component(
    roles: Iterable[RelationshipRole],
    component: IdentityComponent,
) -> tuple[RoleBinding, ...]:
    """Bindings among ``roles`` rooted at ``component``, keeping the given order."""

    return tuple(
        binding
        for binding in (ROLE_BINDINGS[role] for role in roles)
        if binding.component is component
    )
