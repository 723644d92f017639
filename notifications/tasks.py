# notifications/tasks.py
"""
Celery tasks for delivering persisted notifications by e-mail
"""
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from donors.repositories import profile_key
from storage.kv import DatabaseKeyValueStore


@shared_task
def deliver_notification(notification_id):
    """
    E-mail a stored notification to its recipient.
    Queued by the emitter right after the notification is persisted.
    """
    store = DatabaseKeyValueStore()

    notification = store.get(notification_id)
    if not notification:
        return f"Notification {notification_id} not found"

    profile = store.get(profile_key(notification['user_id']))
    email = profile.get('email') if profile else None
    if not email:
        return f"No email for user {notification['user_id']}"

    send_mail(
        subject=notification['title'],
        message=notification['message'],
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[email],
        fail_silently=False,
    )
    return f"📧 Notification {notification_id} sent to {email}"


def queue_delivery(notification):
    """``NotificationEmitter`` dispatch hook."""
    deliver_notification.delay(notification['id'])
