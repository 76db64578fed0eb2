"""
Group membership as seen by the workflow apps.

The workflow never reads membership tables directly.  It asks the module
named by ``settings.ACADEMY_MEMBERSHIP_BACKEND`` (``academy.groups.api`` by
default), so a deployment can answer these questions from elsewhere.
"""

import importlib
import logging

from django.conf import settings

from academy.errors import PermissionDenied

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

DEFAULT_MEMBERSHIP_BACKEND = 'academy.groups.api'

NOT_A_MEMBER_MESSAGE = "그룹 멤버만 이용할 수 있습니다."


def backend():
    """
    Return the membership backend module.

    We retrieve the setting in-line here (rather than at import time), so
    that @override_settings works in the test suite.
    """
    path = getattr(settings, 'ACADEMY_MEMBERSHIP_BACKEND', DEFAULT_MEMBERSHIP_BACKEND)
    return importlib.import_module(path)


def is_member(group_id, user_id):
    return backend().is_member(group_id, user_id)


def get_role(group_id, user_id):
    return backend().get_role(group_id, user_id)


def get_member_name(group_id, user_id):
    return backend().get_member_name(group_id, user_id)


def get_class_name(group_id, user_id):
    return backend().get_class_name(group_id, user_id)


def get_class_member_ids(class_id, role=None):
    return backend().get_class_member_ids(class_id, role=role)


def get_assigned_student_ids(group_id, user_id):
    return backend().get_assigned_student_ids(group_id, user_id)


def resolve_role(group_id, user_id):
    """
    Return the role of the acting user in a group.

    Group-scoped permission checks always start here.

    Raises:
        PermissionDenied: The user is not a member of the group.
    """
    member_backend = backend()
    if not member_backend.is_member(group_id, user_id):
        logger.info("User %s is not a member of group %s", user_id, group_id)
        raise PermissionDenied(
            f"User {user_id} is not a member of group {group_id}",
            user_message=NOT_A_MEMBER_MESSAGE,
        )
    return member_backend.get_role(group_id, user_id)
