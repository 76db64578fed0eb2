"""
Test utilities
"""


from django.core.cache import cache
from django.test import TestCase

from academy.groups import api as groups_api
from academy.permissions import ROLE

GROUP_ID = "academy-1"

ADMIN = "admin-1"
TEACHER = "teacher-1"
PART_TIMER = "part-time-1"
OTHER_PART_TIMER = "part-time-2"
STUDENTS = ("student-1", "student-2", "student-3")
OUTSIDER = "outsider-1"

RECORDING_BACKEND = "academy.test_utils.recording_backend"

# Notifications delivered through ``recording_backend``, oldest first.
SENT_NOTIFICATIONS = []


def recording_backend(target_user_id, notification_type, payload):
    """Notification backend that keeps what it is given, for assertions."""
    SENT_NOTIFICATIONS.append((target_user_id, notification_type, payload))


def _clear_all_caches():
    """Clear the default cache and any custom caches."""
    cache.clear()


class CacheResetTest(TestCase):
    """
    Test case that resets the cache before and after each test.
    """
    def setUp(self):
        super().setUp()
        _clear_all_caches()
        del SENT_NOTIFICATIONS[:]

    def tearDown(self):
        super().tearDown()
        _clear_all_caches()


class AcademyTestCase(CacheResetTest):
    """
    Test case with one group holding a member of every role, and two classes:

        "1반": student-1, student-2, taught by part-time-1
        "2반": student-3
    """
    def setUp(self):
        super().setUp()
        groups_api.add_member(GROUP_ID, ADMIN, ROLE.admin, name="관리자")
        groups_api.add_member(GROUP_ID, TEACHER, ROLE.teacher, name="김선생")
        groups_api.add_member(GROUP_ID, PART_TIMER, ROLE.part_time, name="이강사")
        groups_api.add_member(GROUP_ID, OTHER_PART_TIMER, ROLE.part_time, name="박강사")
        for index, student_id in enumerate(STUDENTS, start=1):
            groups_api.add_member(GROUP_ID, student_id, ROLE.student, name=f"학생{index}")

        self.class_1 = groups_api.create_class(GROUP_ID, "1반", members=[
            (STUDENTS[0], ROLE.student),
            (STUDENTS[1], ROLE.student),
            (PART_TIMER, ROLE.part_time),
        ])
        self.class_2 = groups_api.create_class(GROUP_ID, "2반", members=[
            (STUDENTS[2], ROLE.student),
        ])
