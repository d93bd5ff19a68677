#!/usr/bin/env python3
"""
Terraform Generation Orchestrator

Drives one generation run: maps every discovered resource through the mapper
registry, organises the resulting blocks into files, renders the companion
files and the shell import script, and summarises coverage.
"""

import json
import logging
import re
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from jinja2 import Template

from .config import GeneratorConfig
from .context import MappingContext
from .formatter import HCLFormatter
from .mappers.registry import (
    DEFAULT_SERVICE, MapperRegistry, create_mapper_registry, get_service_for_terraform_type,
)
from .models import (
    Block, DiscoveredResource, Reference, TerraformFileContent, TerraformImport,
    TerraformOutput, TerraformProvider, TerraformResource, TerraformVariable,
)

logger = logging.getLogger(__name__)

FALLBACK_AWS_REGION = 'us-east-1'
FALLBACK_GCP_REGION = 'us-central1'

PROVIDER_SOURCES = {
    'aws': 'hashicorp/aws',
    'google': 'hashicorp/google',
}

OUTPUT_TYPE_PATTERN = re.compile(r'^((?:aws|google)_\w+?)\.')

IMPORT_SCRIPT_TEMPLATE = """#!/bin/bash

# Terraform Import Script
# Generated by cloud-tf-generator

# This script imports existing {{ cloud }} resources into Terraform state.
# Run this script from the directory containing your Terraform configuration.

# Exit on error
set -e

# Initialize Terraform if not already done
if [ ! -d ".terraform" ]; then
  echo "Initializing Terraform..."
  terraform init
fi

# Import resources
echo "Starting resource import..."
{% for imp in imports %}
echo "Importing {{ imp.to }}..."
terraform import "{{ imp.to }}" "{{ imp.id }}" || echo "Warning: Failed to import {{ imp.to }}"
{% endfor %}
echo "Import complete!"
echo ""
echo "Next steps:"
echo "1. Review the imported state: terraform state list"
echo "2. Generate configuration: terraform plan"
echo "3. Review and apply changes: terraform apply"
"""

TFVARS_EXAMPLE_TEMPLATE = """# Example terraform.tfvars file
# Copy this file to terraform.tfvars and fill in the values
{% for var in variables %}
{% if var.description %}# {{ var.description }}
{% endif %}{{ var.name }} = {{ var.example }}
{% endfor %}"""


@dataclass
class GenerationSummary:
    """Coverage statistics for one run"""
    total_resources: int = 0
    mapped_resources: int = 0
    unmapped_resources: int = 0
    resources_by_service: Dict[str, int] = field(default_factory=dict)
    variables_generated: int = 0
    outputs_generated: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_resources': self.total_resources,
            'mapped_resources': self.mapped_resources,
            'unmapped_resources': self.unmapped_resources,
            'resources_by_service': dict(self.resources_by_service),
            'variables_generated': self.variables_generated,
            'outputs_generated': self.outputs_generated,
        }


@dataclass
class GeneratedFiles:
    """Result of a generation run"""
    files: 'OrderedDict[str, str]' = field(default_factory=OrderedDict)
    unmapped_resources: List[DiscoveredResource] = field(default_factory=list)
    variables: List[TerraformVariable] = field(default_factory=list)
    outputs: List[TerraformOutput] = field(default_factory=list)
    imports: List[TerraformImport] = field(default_factory=list)
    import_script: str = ""
    sensitive_values: Dict[str, str] = field(default_factory=dict)
    summary: GenerationSummary = field(default_factory=GenerationSummary)


def escape_shell(value: str) -> str:
    """Escape characters special inside a double-quoted shell string"""
    return (value.replace('\\', '\\\\')
                 .replace('"', '\\"')
                 .replace('$', '\\$')
                 .replace('`', '\\`'))


def example_value(variable: TerraformVariable) -> str:
    """Placeholder shown for a variable in terraform.tfvars.example"""
    if variable.sensitive:
        return '"<sensitive-value>"'
    if variable.default is not None:
        return json.dumps(variable.default)

    var_type = variable.type or 'string'
    if var_type == 'number':
        return '0'
    if var_type == 'bool':
        return 'false'
    if var_type.startswith('list') or var_type.startswith('set'):
        return '[]'
    if var_type.startswith('map') or var_type.startswith('object'):
        return '{}'
    return '""'


def output_service(output: TerraformOutput) -> str:
    """Service bucket of the resource an output points at"""
    match = OUTPUT_TYPE_PATTERN.match(output.value)
    if not match:
        return DEFAULT_SERVICE
    return get_service_for_terraform_type(match.group(1))


class TerraformGenerator:
    """
    Generation orchestrator

    Each call to ``generate`` builds a fresh MappingContext, so one generator
    instance can serve any number of runs.
    """

    def __init__(self, config: Optional[GeneratorConfig] = None,
                 registry: Optional[MapperRegistry] = None):
        self.config = config or GeneratorConfig()
        self.formatter = HCLFormatter(include_comments=self.config.include_comments)
        self.registry = registry or create_mapper_registry(
            self.config.provider, project=self.config.project)

    def generate(self, resources: List[DiscoveredResource]) -> GeneratedFiles:
        """
        Generate Terraform configuration from discovered resources

        Args:
            resources: Discovered resources, in the order they should be mapped

        Returns:
            GeneratedFiles with rendered files, unmapped resources and summary
        """
        logger.info(f"Generating Terraform configuration for {len(resources)} resources")

        context = MappingContext()
        mapped_resources: List[TerraformResource] = []
        unmapped_resources: List[DiscoveredResource] = []
        outputs: List[TerraformOutput] = []
        imports: List[TerraformImport] = []

        # Phase 1: map every resource
        for resource in resources:
            mapped = self._map_resource(resource, context)
            if mapped is None:
                unmapped_resources.append(resource)
                continue

            mapper = self.registry.get(resource.type)
            mapped_resources.append(mapped)
            context.register_resource(mapped)

            if self.config.generate_import_blocks:
                imports.append(TerraformImport(to=mapped.address, id=mapper.get_import_id(resource)))

            outputs.extend(mapper.get_suggested_outputs(resource))

        # Phase 2: organise files
        variables = context.get_variables()
        region = self._resolve_region(resources)
        files = self._organize_files(mapped_resources, variables, imports, outputs, region)

        # Phase 3: import script
        import_script = (self.generate_import_script(imports)
                         if self.config.generate_import_script else "")

        # Phase 4: summary
        summary = self._calculate_summary(resources, mapped_resources, unmapped_resources,
                                          variables, outputs)

        if unmapped_resources:
            logger.warning(f"{len(unmapped_resources)} of {len(resources)} resources could not be mapped")
        logger.info(f"Generated {len(files)} files: {summary.mapped_resources} resources, "
                    f"{summary.variables_generated} variables, {summary.outputs_generated} outputs")

        return GeneratedFiles(
            files=files,
            unmapped_resources=unmapped_resources,
            variables=variables,
            outputs=outputs,
            imports=imports,
            import_script=import_script,
            sensitive_values=context.get_sensitive_values(),
            summary=summary,
        )

    def _map_resource(self, resource: DiscoveredResource,
                      context: MappingContext) -> Optional[TerraformResource]:
        mapper = self.registry.get(resource.type)
        if mapper is None:
            logger.warning(f"No mapper for {resource.type}: {resource.display_name}")
            return None

        try:
            mapped = mapper.map(resource, context)
        except Exception as e:
            logger.warning(f"Mapper {mapper!r} failed for {resource.display_name}: {str(e)}")
            logger.debug("Mapper failure details", exc_info=True)
            return None

        if mapped is None:
            logger.warning(f"Could not map {resource.type} {resource.display_name}: "
                           f"required properties missing")
        else:
            logger.debug(f"Mapped {resource.display_name} to {mapped.address}")
        return mapped

    def _resolve_region(self, resources: List[DiscoveredResource]) -> str:
        if self.config.default_region:
            return self.config.default_region
        if resources and resources[0].region:
            return resources[0].region
        return FALLBACK_GCP_REGION if self.config.provider == 'google' else FALLBACK_AWS_REGION

    def _organize_files(self, resources: List[TerraformResource],
                        variables: List[TerraformVariable],
                        imports: List[TerraformImport],
                        outputs: List[TerraformOutput],
                        region: str) -> 'OrderedDict[str, str]':
        files: 'OrderedDict[str, str]' = OrderedDict()

        files['providers.tf'] = self.generate_providers_file(region)

        if variables:
            files['variables.tf'] = self.formatter.format_file(
                TerraformFileContent(variables=variables))

        if outputs and not self.config.organize_by_service:
            files['outputs.tf'] = self.formatter.format_file(
                TerraformFileContent(outputs=outputs))

        if self.config.generate_import_blocks and imports:
            files['import.tf'] = self.formatter.format_file(
                TerraformFileContent(imports=imports))

        if self.config.organize_by_service:
            resources_by_service: 'OrderedDict[str, List[TerraformResource]]' = OrderedDict()
            for resource in resources:
                service = get_service_for_terraform_type(resource.type)
                resources_by_service.setdefault(service, []).append(resource)

            outputs_by_service: Dict[str, List[TerraformOutput]] = {}
            for output in outputs:
                outputs_by_service.setdefault(output_service(output), []).append(output)

            for service, service_resources in resources_by_service.items():
                files[f'{service}.tf'] = self.formatter.format_file(TerraformFileContent(
                    resources=service_resources,
                    outputs=outputs_by_service.get(service, []),
                ))
        elif resources:
            files['main.tf'] = self.formatter.format_file(
                TerraformFileContent(resources=resources))

        if variables:
            files['terraform.tfvars.example'] = self.generate_tfvars_example(variables)

        return files

    def generate_providers_file(self, region: str) -> str:
        """Render providers.tf: version constraints, provider block and its variables"""
        provider_name = self.config.provider
        terraform_attrs: Dict[str, Any] = {
            'required_version': f">= {self.config.terraform_version}",
            'required_providers': Block({
                provider_name: {
                    'source': PROVIDER_SOURCES[provider_name],
                    'version': self.config.provider_version,
                },
            }),
        }

        backend = self.config.backend
        if backend:
            terraform_attrs[f'backend "{backend["type"]}"'] = Block(dict(backend.get('config') or {}))

        if provider_name == 'google':
            provider = TerraformProvider(name='google', attributes={
                'project': Reference('var.project'),
                'region': Reference('var.region'),
            })
            project_var = TerraformVariable(
                name='project', type='string', description='GCP project ID')
            if self.config.project:
                project_var.default = self.config.project
            variables = [
                project_var,
                TerraformVariable(name='region', type='string',
                                  description='GCP region for resources', default=region),
            ]
        else:
            provider = TerraformProvider(name='aws', attributes={
                'region': Reference('var.aws_region'),
            })
            variables = [
                TerraformVariable(name='aws_region', type='string',
                                  description='AWS region for resources', default=region),
            ]

        return self.formatter.format_file(TerraformFileContent(
            terraform=Block(terraform_attrs),
            providers=[provider],
            variables=variables,
        ))

    def generate_tfvars_example(self, variables: List[TerraformVariable]) -> str:
        template = Template(TFVARS_EXAMPLE_TEMPLATE, keep_trailing_newline=True)
        return template.render(variables=[
            {'name': v.name, 'description': v.description, 'example': example_value(v)}
            for v in variables
        ])

    def generate_import_script(self, imports: List[TerraformImport]) -> str:
        """
        Render the shell import script

        ``to`` and ``id`` are escaped for embedding in double quotes; a failed
        import prints a warning and the script continues.
        """
        template = Template(IMPORT_SCRIPT_TEMPLATE, keep_trailing_newline=True)
        return template.render(
            cloud='GCP' if self.config.provider == 'google' else 'AWS',
            imports=[{'to': escape_shell(imp.to), 'id': escape_shell(imp.id)} for imp in imports],
        )

    def _calculate_summary(self, resources: List[DiscoveredResource],
                           mapped_resources: List[TerraformResource],
                           unmapped_resources: List[DiscoveredResource],
                           variables: List[TerraformVariable],
                           outputs: List[TerraformOutput]) -> GenerationSummary:
        resources_by_service: Dict[str, int] = {}
        for resource in mapped_resources:
            service = get_service_for_terraform_type(resource.type)
            resources_by_service[service] = resources_by_service.get(service, 0) + 1

        return GenerationSummary(
            total_resources=len(resources),
            mapped_resources=len(mapped_resources),
            unmapped_resources=len(unmapped_resources),
            resources_by_service=resources_by_service,
            variables_generated=len(variables),
            outputs_generated=len(outputs),
        )


def create_terraform_generator(config: Optional[GeneratorConfig] = None) -> TerraformGenerator:
    return TerraformGenerator(config)
