"""
Group membership models.

Groups themselves (names, settings, invitations) live in the group
management service; these tables only record who belongs to which group
and class, and with which role, so the workflow apps can answer
permission questions locally.
"""

from django.db import models

from model_utils.models import TimeStampedModel

from academy.permissions import ROLE


class GroupMember(TimeStampedModel):
    """A user's membership in a group, with the single role they hold there."""

    group_id = models.CharField(max_length=64, db_index=True)
    user_id = models.CharField(max_length=64, db_index=True)
    name = models.CharField(max_length=100, blank=True)
    role = models.CharField(max_length=20, choices=ROLE)

    class Meta:
        app_label = "groups"
        unique_together = ("group_id", "user_id")
        ordering = ["group_id", "name"]

    def __repr__(self):
        return f"GroupMember(group_id={self.group_id!r}, user_id={self.user_id!r}, role={self.role!r})"


class GroupClass(models.Model):
    """A class (반) inside a group."""

    group_id = models.CharField(max_length=64, db_index=True)
    name = models.CharField(max_length=100)

    class Meta:
        app_label = "groups"
        ordering = ["group_id", "name"]

    def __str__(self):
        return self.name


class ClassMember(models.Model):
    """A group member placed in a class, either to learn or to teach."""

    group_class = models.ForeignKey(GroupClass, related_name="members", on_delete=models.CASCADE)
    user_id = models.CharField(max_length=64, db_index=True)
    role = models.CharField(max_length=20, choices=ROLE)

    class Meta:
        app_label = "groups"
        unique_together = ("group_class", "user_id")
