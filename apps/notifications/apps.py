from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.notifications'
    verbose_name = 'Notifications'

    def ready(self):
        """Subscribe email handlers to payment events"""
        from apps.payments.signals import payment_succeeded
        from .handlers import send_payment_confirmation

        payment_succeeded.connect(send_payment_confirmation, dispatch_uid='notifications.payment_confirmation')
