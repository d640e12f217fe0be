"""
Factory Boy factories for payment test data.

This module provides factories for creating test instances of payment models.
Factories generate realistic test data while allowing easy customization.

Usage:
    from payments.tests.factories import EscrowFactory, PayoutFactory

    # A PENDING escrow for a fresh in-progress project
    escrow = EscrowFactory()

    # A FUNDED escrow
    escrow = EscrowFactory(funded=True)

    # A RELEASED escrow on a completed project
    escrow = EscrowFactory(released=True)

    # A payout for a specific freelancer
    payout = PayoutFactory(freelancer=freelancer, amount=250_000)
"""

import uuid

import factory
from django.utils import timezone

from authentication.tests.factories import FreelancerFactory
from marketplace.models import ProjectStatus
from marketplace.tests.factories import ProjectFactory
from payments.models import Escrow, GatewayOrder, Payout
from payments.services import split_amount
from payments.state_machines import EscrowStatus, PayoutStatus


class EscrowFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating Escrow instances.

    Default creates a PENDING escrow of 1,500,000 split with the
    configured platform fee.

    Example:
        # Funded escrow for an existing project
        escrow = EscrowFactory(project=project, funded=True)
    """

    class Meta:
        model = Escrow
        skip_postgeneration_save = True

    project = factory.SubFactory(ProjectFactory, in_progress=True)
    client = factory.SelfAttribute("project.client")
    freelancer = factory.SelfAttribute("project.selected_freelancer")
    total_amount = 1_500_000
    platform_fee = factory.LazyAttribute(lambda o: split_amount(o.total_amount)[0])
    freelancer_amount = factory.LazyAttribute(lambda o: split_amount(o.total_amount)[1])
    gateway_order_id = factory.LazyFunction(lambda: f"esc-{uuid.uuid4().hex[:12]}-1700000000000")
    session_token = factory.LazyFunction(lambda: uuid.uuid4().hex)
    status = EscrowStatus.PENDING

    @factory.post_generation
    def gateway_order(obj, create, extracted, **kwargs):
        if create and obj.gateway_order_id:
            GatewayOrder.objects.create(escrow=obj, order_id=obj.gateway_order_id)

    class Params:
        funded = factory.Trait(
            status=EscrowStatus.FUNDED,
            funded_at=factory.LazyFunction(timezone.now),
        )
        released = factory.Trait(
            status=EscrowStatus.RELEASED,
            funded_at=factory.LazyFunction(timezone.now),
            released_at=factory.LazyFunction(timezone.now),
            project=factory.SubFactory(
                ProjectFactory, in_progress=True, status=ProjectStatus.COMPLETED
            ),
        )


class PayoutFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating Payout instances.

    Default creates a PENDING voluntary payout of 100,000.
    """

    class Meta:
        model = Payout
        skip_postgeneration_save = True

    freelancer = factory.SubFactory(FreelancerFactory)
    amount = 100_000
    status = PayoutStatus.PENDING
    bank_code = "BCA"
    bank_name = "Bank Central Asia"
    account_number = "1234567890"
    account_holder_name = factory.SelfAttribute("freelancer.full_name")
