"""ShippingProvider aggregate and its registration command."""

from datetime import UTC, datetime

import structlog
from protean import handle, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import IntegrityViolation
from storefront.shipping.events import ShippingProviderRegistered

logger = structlog.get_logger(__name__)

TRACKING_NUMBER_PLACEHOLDER = "{TRACKING_NUMBER}"


@storefront.aggregate
class ShippingProvider:
    name = String(required=True, max_length=100, unique=True)
    tracking_url_template = String(required=True, max_length=500)
    estimated_delivery_days = Integer(min_value=0)
    is_active = Boolean(default=True)
    registered_at = DateTime()

    @invariant.post
    def template_must_place_tracking_number(self):
        if self.tracking_url_template and TRACKING_NUMBER_PLACEHOLDER not in self.tracking_url_template:
            raise ValidationError(
                {"tracking_url_template": [f"Template must contain {TRACKING_NUMBER_PLACEHOLDER}"]}
            )

    @classmethod
    def register(cls, name, tracking_url_template, estimated_delivery_days=None):
        now = datetime.now(UTC)
        provider = cls(
            name=name,
            tracking_url_template=tracking_url_template,
            estimated_delivery_days=estimated_delivery_days,
            is_active=True,
            registered_at=now,
        )
        provider.raise_(
            ShippingProviderRegistered(
                provider_id=str(provider.id),
                name=name,
                estimated_delivery_days=estimated_delivery_days,
                registered_at=now,
            )
        )
        return provider

    def tracking_url(self, tracking_number: str) -> str:
        return self.tracking_url_template.replace(TRACKING_NUMBER_PLACEHOLDER, tracking_number)


@storefront.command(part_of="ShippingProvider")
class RegisterShippingProvider:
    name = String(required=True, max_length=100)
    tracking_url_template = String(required=True, max_length=500)
    estimated_delivery_days = Integer(min_value=0)


@storefront.command_handler(part_of=ShippingProvider)
class ShippingProviderHandler:
    @handle(RegisterShippingProvider)
    def register(self, command):
        repo = current_domain.repository_for(ShippingProvider)
        if repo.find_by_name(command.name) is not None:
            raise IntegrityViolation({"name": [f"Shipping provider {command.name} already exists"]})

        provider = ShippingProvider.register(
            name=command.name,
            tracking_url_template=command.tracking_url_template,
            estimated_delivery_days=command.estimated_delivery_days,
        )
        repo.add(provider)
        logger.info("Shipping provider registered", provider_id=str(provider.id), name=provider.name)
        return str(provider.id)


def register_provider(name, tracking_url_template, estimated_delivery_days=None) -> ShippingProvider:
    provider_id = current_domain.process(
        RegisterShippingProvider(
            name=name,
            tracking_url_template=tracking_url_template,
            estimated_delivery_days=estimated_delivery_days,
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(ShippingProvider).get(provider_id)
