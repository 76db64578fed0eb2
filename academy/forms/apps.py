"""
academy.forms Django application initialization.
"""

from django.apps import AppConfig


class FormsConfig(AppConfig):
    """
    Configuration for the academy.forms Django application.
    """

    name = 'academy.forms'
    label = 'academy_forms'
    verbose_name = 'Academy forms'
