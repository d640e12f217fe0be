"""
Add celery-beat schedule for the daily auto-dispute sweep.

Runs disputes.tasks.run_auto_dispute_sweep every day at 00:00 UTC to open
disputes on overdue IN_PROGRESS projects and ghosted DELIVERED projects.
"""

from django.db import migrations

TASK_NAME = "Auto Dispute Sweep"


def create_periodic_task(apps, schema_editor):
    """Create the daily periodic task for the auto-dispute sweep."""
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = CrontabSchedule.objects.get_or_create(
        minute="0",
        hour="0",
        day_of_week="*",
        day_of_month="*",
        month_of_year="*",
        timezone="UTC",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "disputes.tasks.run_auto_dispute_sweep",
            "crontab": schedule,
            "enabled": True,
            "description": (
                "Opens disputes for projects past their deadline and for "
                "deliveries the client has not acted on."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("disputes", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
