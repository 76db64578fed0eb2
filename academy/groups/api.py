"""
Public interface for group and class membership.

This is the default membership backend (``ACADEMY_MEMBERSHIP_BACKEND``);
see :mod:`academy.membership` for how the workflow apps consult it.
"""

import logging

from django.db import DatabaseError

from academy.permissions import ROLE

from .errors import GroupMembershipInternalError, GroupMembershipRequestError
from .models import ClassMember, GroupClass, GroupMember

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name


def is_member(group_id, user_id):
    """
    Check whether a user belongs to a group.

    Args:
        group_id (str): The group (academy) identifier.
        user_id (str): The user identifier.

    Returns:
        bool
    """
    return GroupMember.objects.filter(group_id=group_id, user_id=user_id).exists()


def get_role(group_id, user_id):
    """
    Return the role a user holds in a group, or None if they are not a member.
    """
    member = GroupMember.objects.filter(group_id=group_id, user_id=user_id).first()
    return member.role if member else None


def get_member_name(group_id, user_id):
    """Return the display name of a group member, or an empty string."""
    member = GroupMember.objects.filter(group_id=group_id, user_id=user_id).first()
    return member.name if member else ""


def get_class_member_ids(class_id, role=None):
    """
    List the users placed in a class.

    Args:
        class_id (int): The `GroupClass` primary key.

    Keyword Arguments:
        role (str): Only return members holding this role.

    Returns:
        list of str, empty for an unknown class
    """
    try:
        class_id = int(class_id)
    except (TypeError, ValueError):
        return []
    members = ClassMember.objects.filter(group_class_id=class_id)
    if role is not None:
        members = members.filter(role=role)
    return list(members.order_by("user_id").values_list("user_id", flat=True))


def get_class_name(group_id, user_id):
    """
    Return the name of the class a user is placed in within a group.

    Users in several classes get the first class by name; users in none get
    an empty string.
    """
    membership = ClassMember.objects.filter(
        group_class__group_id=group_id, user_id=user_id
    ).select_related("group_class").order_by("group_class__name").first()
    return membership.group_class.name if membership else ""


def get_assigned_student_ids(group_id, user_id):
    """
    List the students sharing a class with a (part-time) teacher.

    Returns:
        set of str
    """
    class_ids = ClassMember.objects.filter(
        group_class__group_id=group_id, user_id=user_id
    ).values_list("group_class_id", flat=True)
    return set(
        ClassMember.objects.filter(
            group_class_id__in=list(class_ids), role=ROLE.student
        ).values_list("user_id", flat=True)
    )


def add_member(group_id, user_id, role, name=""):
    """
    Add a user to a group, or change the role of an existing member.

    Raises:
        GroupMembershipRequestError: The role is not one of the known roles.
        GroupMembershipInternalError: The membership could not be saved.
    """
    if role not in ROLE:
        raise GroupMembershipRequestError({"role": f"Unknown role {role!r}"})
    try:
        member, created = GroupMember.objects.update_or_create(
            group_id=group_id, user_id=user_id,
            defaults={"role": role, "name": name},
        )
    except DatabaseError as ex:
        msg = f"Could not save membership of user {user_id} in group {group_id}"
        logger.exception(msg)
        raise GroupMembershipInternalError(msg) from ex

    logger.info(
        "%s member %s of group %s with role %s",
        "Added" if created else "Updated", user_id, group_id, role
    )
    return member


def create_class(group_id, name, members=()):
    """
    Create a class and place members in it.

    Args:
        group_id (str): The group the class belongs to.
        name (str): Display name of the class.
        members (iterable): ``(user_id, role)`` pairs.

    Returns:
        GroupClass
    """
    group_class = GroupClass.objects.create(group_id=group_id, name=name)
    ClassMember.objects.bulk_create(
        ClassMember(group_class=group_class, user_id=user_id, role=role)
        for user_id, role in members
    )
    logger.info("Created class %s in group %s", group_class.id, group_id)
    return group_class
