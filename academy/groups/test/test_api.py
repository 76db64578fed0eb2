""" Tests for the group membership API """

from unittest.mock import patch

from django.db import DatabaseError
from pytest import raises

from academy.groups import api as groups_api
from academy.groups.errors import GroupMembershipInternalError, GroupMembershipRequestError
from academy.groups.models import GroupMember
from academy.groups.test.factories import ClassMemberFactory, GroupClassFactory, GroupMemberFactory
from academy.permissions import ROLE
from academy.test_utils import CacheResetTest


class TestGroupMembershipApi(CacheResetTest):

    def test_membership_and_role(self):
        GroupMemberFactory(group_id="g1", user_id="u1", role=ROLE.teacher, name="김선생")

        self.assertTrue(groups_api.is_member("g1", "u1"))
        self.assertFalse(groups_api.is_member("g2", "u1"))
        self.assertEqual(groups_api.get_role("g1", "u1"), ROLE.teacher)
        self.assertIsNone(groups_api.get_role("g1", "u2"))
        self.assertEqual(groups_api.get_member_name("g1", "u1"), "김선생")
        self.assertEqual(groups_api.get_member_name("g1", "u2"), "")

    def test_add_member_updates_role(self):
        groups_api.add_member("g1", "u1", ROLE.student, name="학생")
        groups_api.add_member("g1", "u1", ROLE.part_time, name="강사")

        member = GroupMember.objects.get(group_id="g1", user_id="u1")
        self.assertEqual(member.role, ROLE.part_time)
        self.assertEqual(member.name, "강사")

    def test_add_member_with_unknown_role(self):
        with raises(GroupMembershipRequestError) as excinfo:
            groups_api.add_member("g1", "u1", "principal")
        self.assertIn('role', excinfo.value.field_errors)

    @patch.object(GroupMember.objects, 'update_or_create')
    def test_add_member_database_error(self, mock_update_or_create):
        mock_update_or_create.side_effect = DatabaseError("KABOOM!")
        with raises(GroupMembershipInternalError):
            groups_api.add_member("g1", "u1", ROLE.student)

    def test_class_members(self):
        group_class = GroupClassFactory(group_id="g1", name="1반")
        ClassMemberFactory(group_class=group_class, user_id="s2")
        ClassMemberFactory(group_class=group_class, user_id="s1")
        ClassMemberFactory(group_class=group_class, user_id="p1", role=ROLE.part_time)

        self.assertEqual(groups_api.get_class_member_ids(group_class.id), ["p1", "s1", "s2"])
        self.assertEqual(groups_api.get_class_member_ids(group_class.id, role=ROLE.student), ["s1", "s2"])
        self.assertEqual(groups_api.get_class_member_ids(str(group_class.id), role=ROLE.student), ["s1", "s2"])
        self.assertEqual(groups_api.get_class_member_ids("not-a-class"), [])

    def test_class_name(self):
        groups_api.create_class("g1", "2반", members=[("s1", ROLE.student)])
        groups_api.create_class("g1", "1반", members=[("s1", ROLE.student)])

        self.assertEqual(groups_api.get_class_name("g1", "s1"), "1반")
        self.assertEqual(groups_api.get_class_name("g1", "s9"), "")
        self.assertEqual(groups_api.get_class_name("g2", "s1"), "")

    def test_assigned_students(self):
        groups_api.create_class("g1", "1반", members=[
            ("s1", ROLE.student), ("s2", ROLE.student), ("p1", ROLE.part_time),
        ])
        groups_api.create_class("g1", "2반", members=[("s3", ROLE.student), ("p2", ROLE.part_time)])

        self.assertEqual(groups_api.get_assigned_student_ids("g1", "p1"), {"s1", "s2"})
        self.assertEqual(groups_api.get_assigned_student_ids("g1", "p3"), set())
