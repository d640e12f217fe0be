"""
Add celery-beat schedule for reconciling stale pending escrows.

Runs payments.tasks.reconcile_pending_escrows every 15 minutes so escrows
whose webhook never arrived are polled against the gateway.
"""

from django.db import migrations

TASK_NAME = "Reconcile Pending Escrows"


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for reconciling pending escrows."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=15,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "payments.tasks.reconcile_pending_escrows",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Polls the payment gateway for escrows still PENDING after "
                "15 minutes and funds those the gateway reports as paid."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
