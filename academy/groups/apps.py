"""
academy.groups Django application initialization.
"""

from django.apps import AppConfig


class GroupsConfig(AppConfig):
    """
    Configuration for the academy.groups Django application.
    """

    name = 'academy.groups'
    label = 'groups'
    verbose_name = 'Academy groups'
