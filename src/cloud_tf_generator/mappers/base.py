#!/usr/bin/env python3
"""
Base Resource Mapper

Common behaviour for converting one discovered resource into one Terraform
resource block.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from ..context import MappingContext
from ..models import (
    Block, DiscoveredResource, Reference, TerraformOutput, TerraformResource,
    to_terraform_identifier,
)

logger = logging.getLogger(__name__)


class ResourceMapper:
    """
    Base class for per-type mappers

    Subclasses set ``source_type`` and ``terraform_type`` and implement
    ``map``. Mappers hold no state of their own; everything that must outlive a
    single call goes through the ``MappingContext``.
    """

    source_type: str = ""
    terraform_type: str = ""
    provider: str = "aws"

    def map(self, resource: DiscoveredResource,
            context: MappingContext) -> Optional[TerraformResource]:
        """
        Convert a discovered resource

        Returns:
            The resource block, or None when the instance lacks required data
        """
        raise NotImplementedError

    def get_import_id(self, resource: DiscoveredResource) -> str:
        return resource.id

    def get_suggested_outputs(self, resource: DiscoveredResource) -> List[TerraformOutput]:
        return []

    def generate_resource_name(self, resource: DiscoveredResource) -> str:
        return to_terraform_identifier(resource.display_name)

    def map_tags(self, tags: Optional[Dict[str, str]]) -> Dict[str, str]:
        """Copy user tags, dropping provider-reserved ``aws:`` keys"""
        if not tags:
            return {}
        return {k: v for k, v in sorted(tags.items()) if not k.startswith('aws:')}

    def create_block(self, attributes: Dict[str, Any]) -> Block:
        return Block(attributes=attributes)

    def create_reference(self, value: str) -> Reference:
        return Reference(value)

    def resource_reference(self, context: MappingContext, external_id: Optional[str],
                           fallback: Any, attribute: str = 'id') -> Any:
        """Reference to an already-mapped resource, else the literal fallback"""
        reference = context.get_resource_reference(external_id, attribute)
        return reference if reference is not None else fallback

    def output(self, resource: DiscoveredResource, suffix: str, attribute: str,
               description: str, sensitive: bool = False) -> TerraformOutput:
        name = self.generate_resource_name(resource)
        return TerraformOutput(
            name=f"{name}_{suffix}",
            value=f"{self.terraform_type}.{name}.{attribute}",
            description=f"{description} {resource.display_name}",
            sensitive=sensitive,
        )

    def build(self, resource: DiscoveredResource, attributes: Dict[str, Any],
              **kwargs) -> TerraformResource:
        return TerraformResource(
            type=self.terraform_type,
            name=self.generate_resource_name(resource),
            attributes=attributes,
            source_resource=resource,
            **kwargs
        )

    def __repr__(self):
        return f"{self.__class__.__name__}({self.source_type} -> {self.terraform_type})"


def set_if(attributes: Dict[str, Any], key: str, value: Any) -> None:
    """Set ``key`` only when the source value is present and non-empty"""
    if value is None or value == '' or value == [] or value == {}:
        return
    attributes[key] = value


def name_from_arn(arn: Optional[str], marker: str) -> Optional[str]:
    """Extract the trailing name after ``marker/`` in an ARN"""
    if not arn:
        return None
    match = re.search(rf'{re.escape(marker)}/(.+)$', arn)
    return match.group(1).split('/')[-1] if match else None


def last_segment(value: Optional[str]) -> Optional[str]:
    """Trailing path segment of a URL or self link"""
    if not value:
        return None
    return str(value).rstrip('/').split('/')[-1]
