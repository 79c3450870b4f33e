"""
AfriCom Celery Configuration
Outbound sends get their own queue so a backlog of bulk traffic never
delays housekeeping (scheduled releases, OTP expiry).
"""

import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('africom')
app.config_from_object('django.conf:settings', namespace='CELERY')

# Queue definitions
app.conf.task_default_queue = 'default'

app.conf.task_routes = {
    'messaging.tasks.task_send_message': {'queue': 'sms'},
    'messaging.*': {'queue': 'default'},
    'verify.*': {'queue': 'default'},
}

app.conf.task_queues = {
    'default': {
        'exchange': 'default',
        'routing_key': 'default',
    },
    'sms': {
        'exchange': 'sms',
        'routing_key': 'sms',
    },
}

app.autodiscover_tasks()

# Celery Beat Schedule
from celery.schedules import crontab

app.conf.beat_schedule = {
    # Hand scheduled messages to the send queue once they come due
    'release-scheduled-messages': {
        'task': 'messaging.tasks.task_release_scheduled_messages',
        'schedule': crontab(minute='*'),
    },
    # Expire pending OTPs past their lifetime
    'expire-otps': {
        'task': 'verify.tasks.task_expire_otps',
        'schedule': crontab(minute='*'),
    },
}
