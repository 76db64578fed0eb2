"""
Role based permissions for academy groups.

Every member of a group holds exactly one of the four roles below. What a
role may do is a fixed table (``ROLE_PERMISSIONS``) built once at import
time; nothing mutates it afterwards.  A check may additionally carry a
context (who owns the resource, who it is assigned to), which can only
narrow what the table grants, except for the owner override.

None of the checks raise.  Use :func:`require` at API boundaries to turn a
denied check into :class:`academy.errors.PermissionDenied`.
"""

from collections import namedtuple
from types import MappingProxyType
import logging

from model_utils import Choices

from academy.errors import PermissionDenied

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name


ROLE = Choices(
    ('admin', 'admin', '관리자'),
    ('teacher', 'teacher', '선생님'),
    ('part_time', 'part_time', '시간강사'),
    ('student', 'student', '학생'),
)

# Report stages, in workflow order.  "completed" is a terminal pseudo-stage.
STAGE = Choices(
    ('stage_0', 'stage_0', '응답 대기'),
    ('stage_1', 'stage_1', '시간강사 검토'),
    ('stage_2', 'stage_2', '선생님 검토'),
    ('completed', 'completed', '완료'),
)

# What can be done with a single stage of a report.
STAGE_ACCESS = Choices('read', 'write', 'review')

# Modes for form fields filled in by a particular role.
FIELD_ACCESS = Choices('read', 'write')


class ACTIONS:
    """Action vocabulary, namespaced as ``resource:verb``."""

    CREATE_GROUP = "group:create"
    READ_GROUP = "group:read"
    UPDATE_GROUP = "group:update"
    DELETE_GROUP = "group:delete"
    MANAGE_GROUP_MEMBERS = "group:manage_members"
    INVITE_MEMBERS = "group:invite_members"

    CREATE_CLASS = "class:create"
    READ_CLASS = "class:read"
    UPDATE_CLASS = "class:update"
    DELETE_CLASS = "class:delete"
    MANAGE_CLASS_MEMBERS = "class:manage_members"

    CREATE_FORM = "form:create"
    READ_FORM = "form:read"
    UPDATE_FORM = "form:update"
    DELETE_FORM = "form:delete"
    SEND_FORM = "form:send"
    RESPOND_FORM = "form:respond"
    VIEW_ALL_FORMS = "form:view_all"
    VIEW_ASSIGNED_FORMS = "form:view_assigned"

    CREATE_REPORT = "report:create"
    READ_REPORT = "report:read"
    UPDATE_REPORT = "report:update"
    DELETE_REPORT = "report:delete"
    REVIEW_REPORT = "report:review"
    VIEW_ALL_REPORTS = "report:view_all"
    UPDATE_STAGE1 = "report:update_stage1"
    UPDATE_STAGE2 = "report:update_stage2"
    FINALIZE_REPORT = "report:finalize"

    VIEW_STATISTICS = "statistics:view"
    VIEW_ALL_STATISTICS = "statistics:view_all"
    VIEW_CLASS_STATISTICS = "statistics:view_class"
    VIEW_STUDENT_STATISTICS = "statistics:view_student"

    SEND_NOTIFICATION = "notification:send"
    VIEW_NOTIFICATION = "notification:view"
    MANAGE_NOTIFICATIONS = "notification:manage"

    VIEW_USER_PROFILE = "user:view_profile"
    UPDATE_USER_PROFILE = "user:update_profile"
    VIEW_ALL_USERS = "user:view_all"
    MANAGE_USER_ROLES = "user:manage_roles"

    SYSTEM_ADMIN = "system:admin"
    BACKUP_DATA = "system:backup"
    EXPORT_DATA = "system:export"

    @classmethod
    def all(cls):
        """Every action, in declaration order."""
        return [
            value for name, value in vars(cls).items()
            if name.isupper() and isinstance(value, str)
        ]


RESOURCES = Choices(
    ('group', 'group', '그룹'),
    ('class', 'class', '반'),
    ('form', 'form', '폼'),
    ('report', 'report', '보고서'),
    ('user', 'user', '사용자'),
    ('notification', 'notification', '알림'),
    ('statistics', 'statistics', '통계'),
    ('system', 'system', '시스템'),
)


# Contextual scopes.  A student may only read or respond to what is assigned
# to them; a part-time teacher may only touch the classes and students
# assigned to them.
SELF_SCOPED = 'self_scoped'
ASSIGNMENT_SCOPED = 'assignment_scoped'

ACTION_TAGS = MappingProxyType({
    ACTIONS.READ_GROUP: frozenset([SELF_SCOPED]),
    ACTIONS.READ_CLASS: frozenset([SELF_SCOPED, ASSIGNMENT_SCOPED]),
    ACTIONS.CREATE_CLASS: frozenset([ASSIGNMENT_SCOPED]),
    ACTIONS.UPDATE_CLASS: frozenset([ASSIGNMENT_SCOPED]),
    ACTIONS.DELETE_CLASS: frozenset([ASSIGNMENT_SCOPED]),
    ACTIONS.MANAGE_CLASS_MEMBERS: frozenset([ASSIGNMENT_SCOPED]),
    ACTIONS.READ_FORM: frozenset([SELF_SCOPED]),
    ACTIONS.RESPOND_FORM: frozenset([SELF_SCOPED]),
    ACTIONS.VIEW_ALL_FORMS: frozenset([SELF_SCOPED]),
    ACTIONS.VIEW_ASSIGNED_FORMS: frozenset([SELF_SCOPED]),
    ACTIONS.READ_REPORT: frozenset([SELF_SCOPED]),
    ACTIONS.VIEW_ALL_REPORTS: frozenset([SELF_SCOPED]),
    ACTIONS.VIEW_STATISTICS: frozenset([SELF_SCOPED]),
    ACTIONS.VIEW_ALL_STATISTICS: frozenset([SELF_SCOPED]),
    ACTIONS.VIEW_CLASS_STATISTICS: frozenset([SELF_SCOPED, ASSIGNMENT_SCOPED]),
    ACTIONS.VIEW_STUDENT_STATISTICS: frozenset([SELF_SCOPED, ASSIGNMENT_SCOPED]),
    ACTIONS.VIEW_NOTIFICATION: frozenset([SELF_SCOPED]),
    ACTIONS.VIEW_USER_PROFILE: frozenset([SELF_SCOPED]),
    ACTIONS.VIEW_ALL_USERS: frozenset([SELF_SCOPED]),
})

ROLE_SCOPE = MappingProxyType({
    ROLE.student: SELF_SCOPED,
    ROLE.part_time: ASSIGNMENT_SCOPED,
})


ROLE_PERMISSIONS = MappingProxyType({
    ROLE.admin: frozenset(ACTIONS.all()),
    ROLE.teacher: frozenset([
        ACTIONS.READ_GROUP,
        ACTIONS.INVITE_MEMBERS,

        ACTIONS.CREATE_CLASS,
        ACTIONS.READ_CLASS,
        ACTIONS.UPDATE_CLASS,
        ACTIONS.MANAGE_CLASS_MEMBERS,

        ACTIONS.CREATE_FORM,
        ACTIONS.READ_FORM,
        ACTIONS.UPDATE_FORM,
        ACTIONS.SEND_FORM,
        ACTIONS.VIEW_ALL_FORMS,

        # Reports up to the second stage
        ACTIONS.CREATE_REPORT,
        ACTIONS.READ_REPORT,
        ACTIONS.UPDATE_REPORT,
        ACTIONS.REVIEW_REPORT,
        ACTIONS.VIEW_ALL_REPORTS,
        ACTIONS.UPDATE_STAGE2,
        ACTIONS.FINALIZE_REPORT,

        ACTIONS.VIEW_STATISTICS,
        ACTIONS.VIEW_ALL_STATISTICS,
        ACTIONS.VIEW_CLASS_STATISTICS,
        ACTIONS.VIEW_STUDENT_STATISTICS,

        ACTIONS.SEND_NOTIFICATION,
        ACTIONS.VIEW_NOTIFICATION,

        ACTIONS.VIEW_USER_PROFILE,
        ACTIONS.UPDATE_USER_PROFILE,
        ACTIONS.VIEW_ALL_USERS,

        ACTIONS.EXPORT_DATA,
    ]),
    ROLE.part_time: frozenset([
        ACTIONS.READ_GROUP,
        ACTIONS.READ_CLASS,
        ACTIONS.READ_FORM,
        ACTIONS.VIEW_ASSIGNED_FORMS,

        # First review stage only
        ACTIONS.READ_REPORT,
        ACTIONS.UPDATE_STAGE1,

        ACTIONS.VIEW_STATISTICS,
        ACTIONS.VIEW_CLASS_STATISTICS,
        ACTIONS.VIEW_NOTIFICATION,
        ACTIONS.VIEW_USER_PROFILE,
        ACTIONS.UPDATE_USER_PROFILE,
    ]),
    ROLE.student: frozenset([
        ACTIONS.READ_GROUP,
        ACTIONS.READ_CLASS,
        ACTIONS.READ_FORM,
        ACTIONS.RESPOND_FORM,
        ACTIONS.VIEW_ASSIGNED_FORMS,
        ACTIONS.READ_REPORT,
        ACTIONS.VIEW_STATISTICS,
        ACTIONS.VIEW_NOTIFICATION,
        ACTIONS.VIEW_USER_PROFILE,
        ACTIONS.UPDATE_USER_PROFILE,
    ]),
})


# For each stage, the stage actions granted per role; roles not listed fall
# back to the ``None`` entry.  Admins bypass this table.
STAGE_RULES = MappingProxyType({
    STAGE.stage_0: {
        None: frozenset([STAGE_ACCESS.read]),
    },
    STAGE.stage_1: {
        ROLE.part_time: frozenset([STAGE_ACCESS.write, STAGE_ACCESS.review]),
        None: frozenset([STAGE_ACCESS.read]),
    },
    STAGE.stage_2: {
        ROLE.teacher: frozenset([STAGE_ACCESS.write, STAGE_ACCESS.review]),
        None: frozenset([STAGE_ACCESS.read]),
    },
    STAGE.completed: {
        None: frozenset([STAGE_ACCESS.read]),
    },
})


PermissionContext = namedtuple(
    'PermissionContext',
    ['owner_id', 'user_id', 'group_id', 'class_id', 'assigned_to'],
    defaults=(None, None, None, None, None),
)


def _as_context(context):
    if context is None or isinstance(context, PermissionContext):
        return context
    return PermissionContext(**{
        field: context.get(field) for field in PermissionContext._fields
    })


def has_permission(role, action, context=None):
    """
    Check whether a role may perform an action.

    Args:
        role (str): One of ``ROLE``.
        action (str): One of the ``ACTIONS`` values.

    Keyword Arguments:
        context (PermissionContext or dict): Ownership / assignment
            information about the resource being acted on.

    Returns:
        bool

    Examples:
        >>> has_permission('student', ACTIONS.RESPOND_FORM,
        ...                {'user_id': 'u1', 'assigned_to': ['u1']})
        True
    """
    if action not in ROLE_PERMISSIONS.get(role, frozenset()):
        return False

    if context is None:
        return True

    return _check_contextual_permission(role, action, _as_context(context))


def _check_contextual_permission(role, action, context):
    if role == ROLE.admin:
        return True

    if context.owner_id and context.user_id and context.owner_id == context.user_id:
        return True

    scope = ROLE_SCOPE.get(role)
    if scope is not None and scope in ACTION_TAGS.get(action, frozenset()):
        if context.user_id and context.assigned_to is not None:
            return context.user_id in context.assigned_to

    return True


def has_any_permission(role, actions, context=None):
    """True if the role holds at least one of the actions."""
    return any(has_permission(role, action, context) for action in actions)


def has_all_permissions(role, actions, context=None):
    """True if the role holds every one of the actions."""
    return all(has_permission(role, action, context) for action in actions)


def get_available_actions(role, resource):
    """
    List the actions a role holds on a single resource type.

    Returns:
        list of str, sorted
    """
    prefix = f"{resource}:"
    return sorted(
        action for action in ROLE_PERMISSIONS.get(role, frozenset())
        if action.startswith(prefix)
    )


def generate_permission_matrix():
    """
    Build the full role x action table.

    Returns:
        dict: ``{role: {action: bool}}`` for every role and action.
    """
    return {
        role: {action: has_permission(role, action) for action in ACTIONS.all()}
        for role, __ in ROLE
    }


def filter_by_permission(role, items):
    """
    Drop the entries a role may not see from a (nested) list of menu items.

    Each item is a dict that may hold a ``required_permission`` action and a
    ``children`` list of further items.  Items without a requirement are
    always kept.  The input is not modified.
    """
    filtered = []
    for item in items:
        required = item.get('required_permission')
        if required and not has_permission(role, required):
            continue
        item = dict(item)
        if item.get('children'):
            item['children'] = filter_by_permission(role, item['children'])
        filtered.append(item)
    return filtered


def can_access_form_field(role, field_filled_by_role, mode=FIELD_ACCESS.read):
    """
    Check whether a role may read or write a form field filled in by a role.

    Admins and teachers may do anything.  When reading, part-time teachers
    and students may see fields students fill in.  When writing, only the
    role a field belongs to may fill it in.
    """
    if role in (ROLE.admin, ROLE.teacher):
        return True

    if mode == FIELD_ACCESS.read:
        return role in (ROLE.part_time, ROLE.student) and field_filled_by_role == ROLE.student

    if mode == FIELD_ACCESS.write:
        return role == field_filled_by_role

    return False


def can_access_report_stage(role, stage, action):
    """
    Check whether a role may read, write or review a report in a stage.

    Args:
        role (str): One of ``ROLE``.
        stage (str): One of ``STAGE``.
        action (str): One of ``STAGE_ACCESS``.

    Returns:
        bool: Unknown stages and actions are denied.
    """
    if role == ROLE.admin:
        return True

    rules = STAGE_RULES.get(stage)
    if rules is None:
        return False

    granted = rules.get(role, rules[None])
    return action in granted


ERROR_MESSAGES = MappingProxyType({
    'create': "{resource} 생성 권한이 없습니다.",
    'read': "{resource} 조회 권한이 없습니다.",
    'update': "{resource} 수정 권한이 없습니다.",
    'delete': "{resource} 삭제 권한이 없습니다.",
    'manage': "{resource} 관리 권한이 없습니다.",
    'view': "{resource} 열람 권한이 없습니다.",
    'send': "{resource} 전송 권한이 없습니다.",
    'respond': "{resource} 응답 권한이 없습니다.",
    'review': "{resource} 검토 권한이 없습니다.",
})


def permission_error_message(action, resource=None):
    """
    Build the message shown to a user who lacks a permission.

    The verb of the action (``update`` in ``report:update_stage1``) selects
    the phrase; the resource defaults to the action's namespace.
    """
    namespace, __, verb = action.partition(':')
    verb = verb.split('_')[0] if verb else namespace
    resource = resource or namespace
    resource_label = RESOURCES[resource] if resource in RESOURCES else "리소스"

    template = ERROR_MESSAGES.get(verb)
    if template is None:
        return PermissionDenied.default_user_message
    return template.format(resource=resource_label)


def require(role, action, context=None, resource=None):
    """
    Raise :class:`PermissionDenied` unless the role may perform the action.
    """
    if not has_permission(role, action, context):
        logger.info("Denied %s to role %s (context %s)", action, role, context)
        raise PermissionDenied(
            f"Role {role} may not perform {action}",
            user_message=permission_error_message(action, resource),
        )
