"""
This module contains utility functions for sending notifications.

Notifications are fire-and-forget: a workflow transition never depends on
one being delivered.  Delivery is delegated to the callable named by
``settings.ACADEMY_NOTIFICATION_BACKEND``; whatever it raises is logged and
swallowed.
"""

import logging

from django.conf import settings
from django.db import transaction
from django.utils.module_loading import import_string

from model_utils import Choices

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

DEFAULT_NOTIFICATION_BACKEND = 'academy.notifications.log_backend'

NOTIFICATION_TYPE = Choices(
    ('form_assigned', 'form_assigned', '새 폼 배정'),
    ('form_rejected', 'form_rejected', '폼 재작성 요청'),
    ('report_stage_changed', 'report_stage_changed', '보고서 검토 요청'),
    ('report_rejected', 'report_rejected', '보고서 반려'),
    ('report_ready', 'report_ready', '보고서 완료'),
)


def log_backend(target_user_id, notification_type, payload):
    """Default backend: record the notification in the application log."""
    logger.info(
        "Notification %s for user %s: %s", notification_type, target_user_id, payload
    )


def notify(target_user_id, notification_type, payload=None):
    """
    Deliver a notification to a single user.

    Args:
        target_user_id (str): Who should receive the notification.
        notification_type (str): One of ``NOTIFICATION_TYPE``.
        payload (dict): Type specific details (titles, ids, reasons).

    Returns:
        bool: True if the backend accepted the notification.
    """
    if not target_user_id:
        return False

    payload = dict(payload or {})
    payload.setdefault('title', NOTIFICATION_TYPE[notification_type])
    try:
        backend = import_string(
            getattr(settings, 'ACADEMY_NOTIFICATION_BACKEND', DEFAULT_NOTIFICATION_BACKEND)
        )
        backend(target_user_id, notification_type, payload)
    except Exception as exc:  # pylint: disable=broad-except
        logger.error(
            "Error while sending %s notification to user %s: %s",
            notification_type, target_user_id, exc
        )
        return False
    return True


def notify_on_commit(target_user_ids, notification_type, payload=None):
    """
    Queue notifications to be sent once the current transaction commits.

    If the transaction rolls back, nothing is sent.
    """
    target_user_ids = [user_id for user_id in target_user_ids if user_id]
    if not target_user_ids:
        return

    def _send():
        for user_id in target_user_ids:
            notify(user_id, notification_type, payload)

    transaction.on_commit(_send)
