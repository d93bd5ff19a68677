#!/usr/bin/env python3
"""
Command Line Interface for the Terraform Generator

This module provides the ``cloudtf`` CLI: generate Terraform configuration
from a discovered-resource inventory, list supported resource types, and
manage the configuration file.
"""

import click
import json
import logging
import os
import sys
import yaml
from tabulate import tabulate

from . import __version__
from .config import ConfigManager, DEFAULT_CONFIG_TEMPLATE, setup_logging
from .generator import TerraformGenerator
from .inventory import load_resources
from .mappers.registry import create_mapper_registry, get_service_for_terraform_type
from .writer import write_generated_files


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__)
@click.option('--config', '-c', type=click.Path(exists=True),
              help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True,
              help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True,
              help='Enable quiet mode (warnings and errors only)')
@click.pass_context
def cli(ctx, config, verbose, quiet):
    """
    Cloud Inventory to Terraform Generator

    Turns discovered AWS or GCP resources into Terraform configuration with
    import blocks and an import script.
    """
    ctx.ensure_object(dict)

    ctx.obj['config_file'] = config
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif quiet:
        logging.getLogger().setLevel(logging.WARNING)


@cli.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--output-dir', '-o',
              help='Output directory for generated Terraform files')
@click.option('--provider', type=click.Choice(['aws', 'google']),
              help='Target Terraform provider')
@click.option('--region', '-r',
              help='Default region for the provider block')
@click.option('--project',
              help='GCP project ID used in provider block and import IDs')
@click.option('--import-blocks/--no-import-blocks', default=None,
              help='Generate import.tf with import blocks')
@click.option('--import-script/--no-import-script', default=None,
              help='Generate import.sh')
@click.option('--organize-by-service/--single-file', default=None,
              help='One file per service or a single main.tf')
@click.option('--overwrite', is_flag=True, default=None,
              help='Write into a non-empty output directory')
@click.option('--write-sensitive', is_flag=True, default=None,
              help='Write extracted secrets to sensitive.auto.tfvars')
@click.option('--dry-run', is_flag=True,
              help='Show the summary without writing files')
@click.pass_context
def generate(ctx, input_file, output_dir, provider, region, project, import_blocks,
             import_script, organize_by_service, overwrite, write_sensitive, dry_run):
    """
    Generate Terraform configuration from a resource inventory

    INPUT_FILE is a JSON or YAML export of discovered resources.
    """
    try:
        config_manager = ConfigManager()
        cli_args = {
            'output_dir': output_dir,
            'provider': provider,
            'region': region,
            'project': project,
            'import_blocks': import_blocks,
            'import_script': import_script,
            'organize_by_service': organize_by_service,
            'overwrite': overwrite,
            'write_sensitive': write_sensitive,
            'verbose': ctx.obj.get('verbose', False),
            'quiet': ctx.obj.get('quiet', False)
        }

        config = config_manager.load_config(
            config_file=ctx.obj.get('config_file'),
            cli_args=cli_args
        )
        setup_logging(config.logging)

        resources = load_resources(input_file)
        click.echo(f"Loaded {len(resources)} resources from {input_file}")

        generator = TerraformGenerator(config.generator)
        result = generator.generate(resources)
        summary = result.summary

        click.echo(f"\nSuccess Generation completed!")
        click.echo(f"   Total resources: {summary.total_resources}")
        click.echo(f"   Mapped resources: {summary.mapped_resources}")
        click.echo(f"   Unmapped resources: {summary.unmapped_resources}")
        click.echo(f"   Variables generated: {summary.variables_generated}")
        click.echo(f"   Outputs generated: {summary.outputs_generated}")

        _display_generation_tables(result)

        if dry_run:
            click.echo("\n- Dry run, files not written:")
            for file_name in result.files:
                click.echo(f"   {file_name}")
            return

        written = write_generated_files(
            result,
            config.output.output_directory,
            overwrite=config.output.overwrite_existing,
            write_sensitive_values=config.output.write_sensitive_values
        )
        click.echo(f"\nFiles: {len(written)} files written to {config.output.output_directory}")

        if result.sensitive_values and not config.output.write_sensitive_values:
            click.echo(f"Warning  {len(result.sensitive_values)} sensitive values were extracted into "
                       f"variables; provide them in terraform.tfvars before applying.")

        click.echo(f"\n Next steps:")
        click.echo(f"   1. Review the generated configuration in {config.output.output_directory}")
        click.echo(f"   2. Run 'terraform plan' to bring resources in through the import blocks")
        click.echo(f"   3. Or run ./import.sh for Terraform versions without import blocks")

    except Exception as e:
        click.echo(f"Error Generation failed: {str(e)}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--provider', type=click.Choice(['aws', 'google']),
              help='Only list mappers for this provider')
@click.option('--format', 'output_format', type=click.Choice(['table', 'json']),
              default='table', help='Output format')
def list_mappers(provider, output_format):
    """
    List supported resource types

    Shows each source resource type with the Terraform type and service file
    it maps to.
    """
    try:
        registry = create_mapper_registry(provider)
        rows = [
            [mapper.provider, mapper.source_type, mapper.terraform_type,
             get_service_for_terraform_type(mapper.terraform_type)]
            for mapper in registry.get_all()
        ]

        if output_format == 'json':
            keys = ['provider', 'source_type', 'terraform_type', 'service']
            click.echo(json.dumps([dict(zip(keys, row)) for row in rows], indent=2))
        else:
            click.echo(tabulate(rows, headers=['Provider', 'Source Type', 'Terraform Type', 'Service'],
                                tablefmt='grid'))
            click.echo(f"\n{len(rows)} resource types supported")

    except Exception as e:
        click.echo(f"Error Failed to list mappers: {str(e)}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--output-file', '-o', default='cloudtf-config.yaml',
              help='Output configuration file')
@click.option('--format', 'config_format', type=click.Choice(['yaml', 'json']),
              default='yaml', help='Configuration file format')
def init_config(output_file, config_format):
    """
    Generate a default configuration file

    This command creates a default configuration file that can be customized
    for your environment.
    """
    try:
        if os.path.exists(output_file):
            if not click.confirm(f"Configuration file {output_file} already exists. Overwrite?"):
                click.echo("Configuration file creation cancelled.")
                return

        with open(output_file, 'w') as f:
            if config_format == 'yaml':
                f.write(DEFAULT_CONFIG_TEMPLATE)
            else:
                config_dict = yaml.safe_load(DEFAULT_CONFIG_TEMPLATE)
                json.dump(config_dict, f, indent=2)

        click.echo(f"Success Default configuration file created: {output_file}")
        click.echo(f" Edit this file to customize settings for your environment.")

    except Exception as e:
        click.echo(f"Error Failed to create configuration file: {str(e)}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def validate_config(ctx):
    """
    Validate configuration file

    This command validates the configuration file for syntax and semantic errors.
    """
    try:
        config_manager = ConfigManager()
        config_manager.load_config(config_file=ctx.obj.get('config_file'))

        click.echo("Success Configuration validation passed!")

        summary = config_manager.get_config_summary()
        click.echo("\n Configuration Summary:")
        for key, value in summary.items():
            click.echo(f"   {key}: {value}")

    except Exception as e:
        click.echo(f"Error Configuration validation failed: {str(e)}", err=True)
        sys.exit(1)


def _display_generation_tables(result):
    """Display per-service and unmapped resource tables"""

    if result.summary.resources_by_service:
        click.echo("\n Resources by Service:")
        service_data = sorted(result.summary.resources_by_service.items())
        click.echo(tabulate(service_data, headers=['Service', 'Resources'], tablefmt='grid'))

    if result.unmapped_resources:
        click.echo("\nWarning  Unmapped Resources (write these blocks by hand):")
        unmapped_data = [
            [resource.type, resource.display_name, resource.region or '-']
            for resource in result.unmapped_resources
        ]
        # Only show the first 20
        click.echo(tabulate(unmapped_data[:20], headers=['Type', 'Name', 'Region'], tablefmt='grid'))
        if len(unmapped_data) > 20:
            click.echo(f"... and {len(unmapped_data) - 20} more unmapped resources")


def main():
    """Main entry point for the CLI"""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nWarning  Operation cancelled by user.")
        sys.exit(1)


if __name__ == '__main__':
    main()
