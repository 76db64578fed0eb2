"""
academy.reports Django application initialization.
"""

from django.apps import AppConfig


class ReportsConfig(AppConfig):
    """
    Configuration for the academy.reports Django application.
    """

    name = 'academy.reports'
    label = 'reports'
    verbose_name = 'Academy reports'
