#!/usr/bin/env python3
"""
Mapping Context

Per-run state shared by every mapper invocation: registered resources for
cross-references, the variable registry and the sensitive value store. A new
context is created for each generation run.
"""

import logging
from typing import Any, Dict, List, Optional

from .models import Reference, TerraformResource, TerraformVariable

logger = logging.getLogger(__name__)


class MappingContext:
    """Mutable state for one generation run"""

    def __init__(self):
        self._resources: Dict[str, TerraformResource] = {}
        self._resources_by_external_id: Dict[str, TerraformResource] = {}
        self._variables: Dict[str, TerraformVariable] = {}
        self._sensitive_values: Dict[str, str] = {}

    def register_resource(self, resource: TerraformResource) -> None:
        """
        Record a mapped resource so later mappers can reference it

        The resource is keyed by its ``type.name`` address and, when the source
        record carried one, by its ARN or self link.
        """
        self._resources[resource.address] = resource

        source = resource.source_resource
        if source is not None and source.arn:
            self._resources_by_external_id[source.arn] = resource
        logger.debug(f"Registered {resource.address}")

    def get_resource_reference(self, external_id: Optional[str],
                               attribute: str = 'id') -> Optional[Reference]:
        """
        Resolve a previously registered resource to a reference

        Args:
            external_id: ARN or self link of the source resource
            attribute: Attribute of the target block to point at

        Returns:
            ``type.name.<attribute>`` reference, or None when nothing is registered
        """
        if not external_id:
            return None
        resource = self._resources_by_external_id.get(external_id)
        if resource is None:
            return None
        return Reference(f"{resource.address}.{attribute}")

    def add_variable(self, variable: TerraformVariable) -> str:
        """
        Register a variable, suffixing ``_1``, ``_2``... on name collisions

        Returns:
            The name actually assigned
        """
        base_name = variable.name
        name = base_name
        counter = 1
        while name in self._variables:
            name = f"{base_name}_{counter}"
            counter += 1

        if name != base_name:
            logger.debug(f"Variable {base_name} already defined, using {name}")
        variable.name = name
        self._variables[name] = variable
        return name

    def mark_sensitive(self, key: str, value: Any,
                       description: Optional[str] = None) -> Reference:
        """
        Replace a literal secret with a sensitive variable reference

        The literal is kept only in the sensitive value store and never ends up
        in generated configuration text.
        """
        name = self.add_variable(TerraformVariable(
            name=f"sensitive_{key}",
            type='string',
            description=description or f"Sensitive value for {key}",
            sensitive=True,
        ))
        self._sensitive_values[name] = str(value)
        return Reference(f"var.{name}")

    def get_variables(self) -> List[TerraformVariable]:
        return list(self._variables.values())

    def get_sensitive_values(self) -> Dict[str, str]:
        return dict(self._sensitive_values)

    def get_resources(self) -> List[TerraformResource]:
        return list(self._resources.values())
