#!/usr/bin/env python3
"""
HCL Formatter

This module renders the generic Terraform value/block model into HCL text.
Rendering is a pure function of its input: sections are emitted in a fixed
order so repeated runs produce byte-identical files.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from .models import (
    Block, Expression, Reference, TerraformDataSource, TerraformFileContent,
    TerraformImport, TerraformLifecycle, TerraformOutput, TerraformProvider,
    TerraformResource, TerraformVariable,
)

logger = logging.getLogger(__name__)

# Strings that already are a traversal (aws_vpc.main.id, var.region). Dotted
# literals such as "t2.micro" or "lambda_function.lambda_handler" stay quoted.
BARE_REFERENCE_PATTERN = re.compile(
    r"^(?:var|local|module|data|each|count|path|self|terraform|(?:aws|google)_[a-z0-9_]+)"
    r"(?:\.[a-z_][a-z0-9_-]*|\[[^\]]+\])+$",
    re.IGNORECASE,
)

MAX_INLINE_LIST_ITEMS = 5
MAX_INLINE_MAP_ENTRIES = 3


class HCLFormatter:
    """
    Formatter for Terraform configuration files

    The formatter trusts its input: it never validates attribute names and
    never raises for unexpected value shapes, which are coerced with ``str()``.
    """

    def __init__(self, indent: str = "  ", include_comments: bool = True,
                 line_width: int = 80):
        """
        Initialize the formatter

        Args:
            indent: String used for one level of indentation
            include_comments: Emit ``# name`` / ``# ARN:`` comments above resources
            line_width: Width budget used to decide inline vs multi-line collections
        """
        self.indent = indent
        self.include_comments = include_comments
        self.line_width = line_width

    def format_file(self, content: TerraformFileContent) -> str:
        """
        Render a complete file

        Section order: terraform, providers, variables, locals, data sources,
        imports, resources, outputs.
        """
        sections: List[str] = []

        if content.terraform is not None:
            sections.append(self.format_terraform_block(content.terraform))

        for provider in content.providers:
            sections.append(self.format_provider(provider))

        for variable in content.variables:
            sections.append(self.format_variable(variable))

        if content.locals:
            sections.append(self.format_locals(content.locals))

        for data_source in content.data_sources:
            sections.append(self.format_data_source(data_source))

        for import_block in content.imports:
            sections.append(self.format_import(import_block))

        for resource in content.resources:
            sections.append(self.format_resource(resource))

        for output in content.outputs:
            sections.append(self.format_output(output))

        return '\n\n'.join(sections) + '\n'

    def format_terraform_block(self, block: Block) -> str:
        lines = ['terraform {']
        lines.extend(self._format_attributes(block.attributes, 1))
        lines.append('}')
        return '\n'.join(lines)

    def format_provider(self, provider: TerraformProvider) -> str:
        lines = [f'provider "{provider.name}" {{']
        if provider.alias:
            lines.append(f'{self.indent}alias = "{provider.alias}"')

        attributes = {k: v for k, v in provider.attributes.items() if k != 'alias'}
        lines.extend(self._format_attributes(attributes, 1))
        lines.append('}')
        return '\n'.join(lines)

    def format_variable(self, variable: TerraformVariable) -> str:
        ind = self.indent
        lines = [f'variable "{variable.name}" {{']

        if variable.description:
            lines.append(f'{ind}description = {self.format_value(variable.description)}')
        if variable.type:
            lines.append(f'{ind}type        = {variable.type}')
        if variable.default is not None:
            lines.append(f'{ind}default     = {self.format_value(variable.default)}')
        if variable.sensitive:
            lines.append(f'{ind}sensitive   = true')
        if variable.nullable is not None:
            lines.append(f'{ind}nullable    = {self.format_value(variable.nullable)}')

        for validation in variable.validation:
            lines.append('')
            lines.append(f'{ind}validation {{')
            lines.append(f'{ind}{ind}condition     = {validation.condition}')
            lines.append(f'{ind}{ind}error_message = {self.format_value(validation.error_message)}')
            lines.append(f'{ind}}}')

        lines.append('}')
        return '\n'.join(lines)

    def format_locals(self, locals_: Dict[str, Any]) -> str:
        lines = ['locals {']
        for key, value in locals_.items():
            lines.append(f'{self.indent}{key} = {self.format_value(value, 1)}')
        lines.append('}')
        return '\n'.join(lines)

    def format_data_source(self, data_source: TerraformDataSource) -> str:
        lines = [f'data "{data_source.type}" "{data_source.name}" {{']
        if data_source.provider:
            lines.append(f'{self.indent}provider = {data_source.provider}')
        lines.extend(self._format_attributes(data_source.attributes, 1))
        lines.append('}')
        return '\n'.join(lines)

    def format_import(self, import_block: TerraformImport) -> str:
        lines = [
            'import {',
            f'{self.indent}to = {import_block.to}',
            f'{self.indent}id = {self._format_string(import_block.id, quote_only=True)}',
        ]
        if import_block.provider:
            lines.append(f'{self.indent}provider = {import_block.provider}')
        lines.append('}')
        return '\n'.join(lines)

    def format_resource(self, resource: TerraformResource) -> str:
        ind = self.indent
        lines: List[str] = []

        source = resource.source_resource
        if self.include_comments and source is not None:
            lines.append(f'# {self._comment_text(source.display_name)}')
            if source.arn:
                lines.append(f'# ARN: {self._comment_text(source.arn)}')

        lines.append(f'resource "{resource.type}" "{resource.name}" {{')

        if resource.provider:
            lines.append(f'{ind}provider = {resource.provider}')
            lines.append('')
        if resource.count is not None:
            lines.append(f'{ind}count = {resource.count}')
            lines.append('')
        if resource.for_each:
            lines.append(f'{ind}for_each = {resource.for_each}')
            lines.append('')

        lines.extend(self._format_attributes(resource.attributes, 1))

        if resource.lifecycle is not None:
            lines.append('')
            lines.extend(self._format_lifecycle(resource.lifecycle, 1))

        if resource.depends_on:
            lines.append('')
            lines.append(f'{ind}depends_on = [')
            for dependency in resource.depends_on:
                lines.append(f'{ind}{ind}{dependency},')
            lines.append(f'{ind}]')

        # Modifier spacing must not leave a blank line before the closing brace
        while lines and lines[-1] == '':
            lines.pop()
        lines.append('}')
        return '\n'.join(lines)

    def format_output(self, output: TerraformOutput) -> str:
        ind = self.indent
        lines = [f'output "{output.name}" {{']

        if output.description:
            lines.append(f'{ind}description = {self.format_value(output.description)}')
        lines.append(f'{ind}value       = {output.value}')
        if output.sensitive:
            lines.append(f'{ind}sensitive   = true')
        if output.depends_on:
            lines.append(f'{ind}depends_on  = [')
            for dependency in output.depends_on:
                lines.append(f'{ind}{ind}{dependency},')
            lines.append(f'{ind}]')

        lines.append('}')
        return '\n'.join(lines)

    def format_value(self, value: Any, level: int = 0) -> str:
        """
        Render a single value

        Args:
            value: Any TerraformValue variant
            level: Current indentation level, used for multi-line collections

        Returns:
            HCL text for the value
        """
        if value is None:
            return 'null'
        if isinstance(value, bool):
            return 'true' if value else 'false'
        if isinstance(value, (int, float)):
            return self._format_number(value)
        if isinstance(value, str):
            return self._format_string(value)
        if isinstance(value, (Reference, Expression)):
            return value.value
        if isinstance(value, Block):
            return self._format_map(value.attributes, level)
        if isinstance(value, (list, tuple)):
            return self._format_list(list(value), level)
        if isinstance(value, dict):
            return self._format_map(value, level)

        logger.debug(f"Coercing unsupported value of type {type(value).__name__} to string")
        return self._format_string(str(value))

    def _format_attributes(self, attributes: Dict[str, Any], level: int) -> List[str]:
        """Simple attributes first in caller order, then nested blocks"""
        indent = self.indent * level
        simple_attrs = []
        block_attrs = []

        for key, value in attributes.items():
            if self._is_block(value) or self._is_block_list(value):
                block_attrs.append((key, value))
            else:
                simple_attrs.append((key, value))

        lines = [f'{indent}{key} = {self.format_value(value, level)}'
                 for key, value in simple_attrs]

        for key, value in block_attrs:
            blocks = value if isinstance(value, list) else [value]
            for block in blocks:
                if lines:
                    lines.append('')
                lines.extend(self._format_nested_block(key, block, level))

        return lines

    def _format_nested_block(self, name: str, block: Block, level: int) -> List[str]:
        indent = self.indent * level
        lines = [f'{indent}{name} {{']
        lines.extend(self._format_attributes(block.attributes, level + 1))
        lines.append(f'{indent}}}')
        return lines

    def _format_lifecycle(self, lifecycle: TerraformLifecycle, level: int) -> List[str]:
        indent = self.indent * level
        inner = indent + self.indent
        lines = [f'{indent}lifecycle {{']

        if lifecycle.create_before_destroy is not None:
            lines.append(f'{inner}create_before_destroy = '
                         f'{self.format_value(lifecycle.create_before_destroy)}')
        if lifecycle.prevent_destroy is not None:
            lines.append(f'{inner}prevent_destroy = {self.format_value(lifecycle.prevent_destroy)}')

        if lifecycle.ignore_changes == 'all':
            lines.append(f'{inner}ignore_changes = all')
        elif lifecycle.ignore_changes:
            lines.append(f'{inner}ignore_changes = [')
            for attribute in lifecycle.ignore_changes:
                lines.append(f'{inner}{self.indent}{attribute},')
            lines.append(f'{inner}]')

        if lifecycle.replace_triggered_by:
            lines.append(f'{inner}replace_triggered_by = [')
            for trigger in lifecycle.replace_triggered_by:
                lines.append(f'{inner}{self.indent}{trigger},')
            lines.append(f'{inner}]')

        lines.append(f'{indent}}}')
        return lines

    def _format_number(self, value) -> str:
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)

    def _format_string(self, value: str, quote_only: bool = False) -> str:
        if not quote_only:
            if value.startswith('${') or BARE_REFERENCE_PATTERN.match(value):
                return value
            if '${' in value and '\n' in value:
                return f'<<-EOT\n{value}\nEOT'
        return f'"{self._escape_string(value)}"'

    @staticmethod
    def _escape_string(value: str) -> str:
        return (value.replace('\\', '\\\\')
                     .replace('"', '\\"')
                     .replace('\n', '\\n')
                     .replace('\r', '\\r')
                     .replace('\t', '\\t'))

    def _format_list(self, items: List[Any], level: int) -> str:
        if not items:
            return '[]'

        if all(self._is_scalar(item) for item in items) and len(items) <= MAX_INLINE_LIST_ITEMS:
            inline = ', '.join(self.format_value(item) for item in items)
            if len(inline) < self.line_width - 10:
                return f'[{inline}]'

        indent = self.indent * level
        lines = ['[']
        for item in items:
            lines.append(f'{indent}{self.indent}{self.format_value(item, level + 1)},')
        lines.append(f'{indent}]')
        return '\n'.join(lines)

    def _format_map(self, entries: Dict[str, Any], level: int) -> str:
        if not entries:
            return '{}'

        if all(self._is_scalar(v) for v in entries.values()) and len(entries) <= MAX_INLINE_MAP_ENTRIES:
            inline = ', '.join(f'{self._format_key(k)} = {self.format_value(v)}'
                               for k, v in entries.items())
            if len(inline) < self.line_width - 10:
                return f'{{ {inline} }}'

        indent = self.indent * level
        lines = ['{']
        for key, value in entries.items():
            lines.append(f'{indent}{self.indent}{self._format_key(key)} = '
                         f'{self.format_value(value, level + 1)}')
        lines.append(f'{indent}}}')
        return '\n'.join(lines)

    @staticmethod
    def _comment_text(value: str) -> str:
        # A comment must stay on one line
        return value.replace('\r\n', ' ').replace('\r', ' ').replace('\n', ' ')

    @staticmethod
    def _format_key(key: str) -> str:
        # Tag keys such as "kubernetes.io/cluster" are not valid bare identifiers
        if re.match(r'^[a-zA-Z_][a-zA-Z0-9_-]*$', key):
            return key
        return json.dumps(key)

    @staticmethod
    def _is_scalar(value: Any) -> bool:
        return value is None or isinstance(value, (str, int, float, bool, Reference, Expression))

    @staticmethod
    def _is_block(value: Any) -> bool:
        return isinstance(value, Block)

    @staticmethod
    def _is_block_list(value: Any) -> bool:
        return (isinstance(value, list) and len(value) > 0
                and all(isinstance(item, Block) for item in value))


def format_terraform_file(content: TerraformFileContent,
                          formatter: Optional[HCLFormatter] = None) -> str:
    """Render ``content`` with a default formatter"""
    return (formatter or HCLFormatter()).format_file(content)
