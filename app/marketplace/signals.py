"""
Django signals for the marketplace.

Handlers:
    - create_freelancer_profile: every FREELANCER user gets a FreelancerProfile
"""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_freelancer_profile(sender, instance, created, **kwargs):
    """Create the FreelancerProfile for newly registered freelancers."""
    if created and instance.is_freelancer:
        from marketplace.models import FreelancerProfile

        FreelancerProfile.objects.get_or_create(user=instance)
        logger.debug(f"Freelancer profile created for user: {instance.email}")
