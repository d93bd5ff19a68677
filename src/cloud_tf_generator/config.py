#!/usr/bin/env python3
"""
Configuration Management Module

This module handles configuration loading, validation, and management for the
Terraform generator, and sets up logging from the loaded configuration.
"""

import os
import yaml
import json
import logging
import logging.handlers
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field, asdict
from pathlib import Path
from jsonschema import validate, ValidationError

logger = logging.getLogger(__name__)

BACKEND_TYPES = ["s3", "local", "remote", "gcs", "azurerm"]


@dataclass
class GeneratorConfig:
    """Configuration for Terraform generation"""
    generate_import_blocks: bool = True
    generate_import_script: bool = True
    organize_by_service: bool = True
    include_comments: bool = True
    terraform_version: str = "1.5.0"
    provider_version: str = "~> 5.0"
    default_region: Optional[str] = None
    provider: str = "aws"  # aws, google
    project: Optional[str] = None
    # {"type": "s3", "config": {"bucket": ..., "key": ...}}
    backend: Optional[Dict[str, Any]] = None


@dataclass
class OutputConfig:
    """Configuration for writing generated files"""
    output_directory: str = "./terraform_output"
    overwrite_existing: bool = False
    write_sensitive_values: bool = False


@dataclass
class LoggingConfig:
    """Configuration for logging"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    console: bool = True
    max_file_size: int = 10485760  # 10MB
    backup_count: int = 5


@dataclass
class ToolConfig:
    """Main configuration class for the generator tool"""
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigManager:
    """Configuration manager for the generator tool"""

    # JSON Schema for configuration validation
    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "generator": {
                "type": "object",
                "properties": {
                    "generate_import_blocks": {"type": "boolean"},
                    "generate_import_script": {"type": "boolean"},
                    "organize_by_service": {"type": "boolean"},
                    "include_comments": {"type": "boolean"},
                    "terraform_version": {"type": "string", "minLength": 1},
                    "provider_version": {"type": "string", "minLength": 1},
                    "default_region": {"type": ["string", "null"]},
                    "provider": {"type": "string", "enum": ["aws", "google"]},
                    "project": {"type": ["string", "null"]},
                    "backend": {
                        "type": ["object", "null"],
                        "properties": {
                            "type": {"type": "string", "enum": BACKEND_TYPES},
                            "config": {"type": "object"}
                        },
                        "required": ["type"]
                    }
                }
            },
            "output": {
                "type": "object",
                "properties": {
                    "output_directory": {"type": "string"},
                    "overwrite_existing": {"type": "boolean"},
                    "write_sensitive_values": {"type": "boolean"}
                }
            },
            "logging": {
                "type": "object",
                "properties": {
                    "level": {
                        "type": "string",
                        "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
                    },
                    "format": {"type": "string"},
                    "file": {"type": ["string", "null"]},
                    "console": {"type": "boolean"},
                    "max_file_size": {"type": "integer", "minimum": 1024},
                    "backup_count": {"type": "integer", "minimum": 1}
                }
            }
        }
    }

    DEFAULT_LOCATIONS = [
        './cloudtf-config.yaml',
        './cloudtf-config.yml',
        './config/cloudtf-config.yaml',
        '~/.cloudtf/config.yaml',
        '/etc/cloudtf/config.yaml'
    ]

    def __init__(self):
        self.config = ToolConfig()
        self._config_sources: List[str] = []

    def load_config(self,
                    config_file: Optional[str] = None,
                    cli_args: Optional[Dict[str, Any]] = None,
                    env_vars: bool = True) -> ToolConfig:
        """
        Load configuration from multiple sources with precedence:
        1. CLI arguments (highest priority)
        2. Environment variables
        3. Configuration file
        4. Default values (lowest priority)
        """
        logger.info("Loading configuration")

        self.config = ToolConfig()
        self._config_sources = ["defaults"]

        if config_file:
            self._load_from_file(config_file)
        else:
            for location in self.DEFAULT_LOCATIONS:
                expanded_path = os.path.expanduser(location)
                if os.path.exists(expanded_path):
                    self._load_from_file(expanded_path)
                    break

        if env_vars:
            self._load_from_env()

        if cli_args:
            self._apply_cli_args(cli_args)

        self._validate_config()

        logger.info(f"Configuration loaded from sources: {', '.join(self._config_sources)}")
        return self.config

    def _load_from_file(self, config_file: str):
        """Load configuration from YAML or JSON file"""
        config_path = Path(config_file).expanduser()
        if not config_path.exists():
            logger.warning(f"Configuration file not found: {config_file}")
            return

        try:
            with open(config_path, 'r') as f:
                if config_path.suffix.lower() in ['.yaml', '.yml']:
                    file_config = yaml.safe_load(f)
                elif config_path.suffix.lower() == '.json':
                    file_config = json.load(f)
                else:
                    logger.warning(f"Unsupported configuration file format: {config_path.suffix}")
                    return
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load configuration from {config_file}: {str(e)}")
            raise

        if file_config:
            if not isinstance(file_config, dict):
                raise ValueError(f"Invalid configuration: {config_file} must contain a mapping")
            self._merge_config(file_config)
            self._config_sources.append(f"file:{config_file}")
            logger.info(f"Loaded configuration from {config_file}")

    def _load_from_env(self):
        """Load configuration from CLOUDTF_* environment variables"""
        env_config: Dict[str, Any] = {}

        string_settings = [
            ('CLOUDTF_PROVIDER', 'generator', 'provider'),
            ('CLOUDTF_REGION', 'generator', 'default_region'),
            ('CLOUDTF_PROJECT', 'generator', 'project'),
            ('CLOUDTF_TERRAFORM_VERSION', 'generator', 'terraform_version'),
            ('CLOUDTF_PROVIDER_VERSION', 'generator', 'provider_version'),
            ('CLOUDTF_OUTPUT_DIR', 'output', 'output_directory'),
            ('CLOUDTF_LOG_LEVEL', 'logging', 'level'),
            ('CLOUDTF_LOG_FILE', 'logging', 'file'),
        ]
        for env_name, section, key in string_settings:
            if os.getenv(env_name):
                env_config.setdefault(section, {})[key] = os.getenv(env_name)

        flag_settings = [
            ('CLOUDTF_IMPORT_BLOCKS', 'generator', 'generate_import_blocks'),
            ('CLOUDTF_IMPORT_SCRIPT', 'generator', 'generate_import_script'),
            ('CLOUDTF_ORGANIZE_BY_SERVICE', 'generator', 'organize_by_service'),
            ('CLOUDTF_OVERWRITE', 'output', 'overwrite_existing'),
        ]
        for env_name, section, key in flag_settings:
            if os.getenv(env_name):
                env_config.setdefault(section, {})[key] = os.getenv(env_name).lower() == 'true'

        if env_config:
            self._merge_config(env_config)
            self._config_sources.append("environment")
            logger.debug("Loaded configuration from environment variables")

    def _apply_cli_args(self, cli_args: Dict[str, Any]):
        """Apply CLI arguments to configuration; None means not given"""
        cli_config: Dict[str, Any] = {}

        generator_keys = [
            ('provider', 'provider'),
            ('region', 'default_region'),
            ('project', 'project'),
            ('terraform_version', 'terraform_version'),
            ('provider_version', 'provider_version'),
            ('import_blocks', 'generate_import_blocks'),
            ('import_script', 'generate_import_script'),
            ('organize_by_service', 'organize_by_service'),
            ('comments', 'include_comments'),
        ]
        for arg, key in generator_keys:
            if cli_args.get(arg) is not None:
                cli_config.setdefault('generator', {})[key] = cli_args[arg]

        if cli_args.get('output_dir'):
            cli_config.setdefault('output', {})['output_directory'] = cli_args['output_dir']
        if cli_args.get('overwrite') is not None:
            cli_config.setdefault('output', {})['overwrite_existing'] = cli_args['overwrite']
        if cli_args.get('write_sensitive') is not None:
            cli_config.setdefault('output', {})['write_sensitive_values'] = cli_args['write_sensitive']

        if cli_args.get('verbose'):
            cli_config.setdefault('logging', {})['level'] = 'DEBUG'
        elif cli_args.get('quiet'):
            cli_config.setdefault('logging', {})['level'] = 'WARNING'

        if cli_config:
            self._merge_config(cli_config)
            self._config_sources.append("cli_args")
            logger.debug("Applied CLI arguments to configuration")

    def _merge_config(self, new_config: Dict[str, Any]):
        """Merge new configuration into existing configuration"""
        def merge_dict(base: Dict, update: Dict):
            for key, value in update.items():
                if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                    merge_dict(base[key], value)
                else:
                    base[key] = value

        config_dict = self._config_to_dict()
        merge_dict(config_dict, new_config)

        # Validate before rebuilding so unknown keys surface as schema errors
        self._validate_dict(config_dict)
        self.config = self._dict_to_config(config_dict)

    def _config_to_dict(self) -> Dict[str, Any]:
        """Convert configuration dataclass to dictionary"""
        return asdict(self.config)

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> ToolConfig:
        """Convert dictionary to configuration dataclass"""
        try:
            return ToolConfig(
                generator=GeneratorConfig(**config_dict.get('generator', {})),
                output=OutputConfig(**config_dict.get('output', {})),
                logging=LoggingConfig(**config_dict.get('logging', {}))
            )
        except TypeError as e:
            raise ValueError(f"Invalid configuration: {str(e)}")

    def _validate_dict(self, config_dict: Dict[str, Any]):
        try:
            validate(instance=config_dict, schema=self.CONFIG_SCHEMA)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e.message}")
            raise ValueError(f"Invalid configuration: {e.message}")

    def _validate_config(self):
        """Validate configuration against schema"""
        self._validate_dict(self._config_to_dict())
        logger.debug("Configuration validation passed")

    def validate_file(self, config_file: str) -> ToolConfig:
        """Load a single file on top of defaults, ignoring environment and CLI"""
        if not Path(config_file).expanduser().exists():
            raise ValueError(f"Invalid configuration: file not found: {config_file}")
        return self.load_config(config_file=config_file, env_vars=False)

    def save_config(self, output_file: str, format: str = 'yaml'):
        """Save current configuration to file"""
        config_dict = self._config_to_dict()

        if format.lower() not in ('yaml', 'json'):
            raise ValueError(f"Unsupported format: {format}")

        try:
            with open(output_file, 'w') as f:
                if format.lower() == 'yaml':
                    yaml.dump(config_dict, f, default_flow_style=False, indent=2)
                else:
                    json.dump(config_dict, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save configuration: {str(e)}")
            raise

        logger.info(f"Configuration saved to {output_file}")

    def get_config_summary(self) -> Dict[str, Any]:
        """Get a summary of current configuration"""
        generator = self.config.generator
        return {
            'sources': self._config_sources,
            'provider': generator.provider,
            'default_region': generator.default_region,
            'organize_by_service': generator.organize_by_service,
            'backend': (generator.backend or {}).get('type'),
            'output_directory': self.config.output.output_directory,
            'logging_level': self.config.logging.level
        }


def setup_logging(config: LoggingConfig):
    """
    Configure the root logger from a LoggingConfig

    Replaces any handlers installed earlier so repeated calls do not duplicate
    output.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    if config.console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if config.file:
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.expanduser(config.file),
            maxBytes=config.max_file_size,
            backupCount=config.backup_count
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if not root.handlers:
        root.addHandler(logging.NullHandler())

    root.setLevel(getattr(logging, config.level.upper(), logging.INFO))


# Default configuration template
DEFAULT_CONFIG_TEMPLATE = """
# Terraform Generator Configuration

generator:
  generate_import_blocks: true
  generate_import_script: true
  organize_by_service: true
  include_comments: true
  terraform_version: "1.5.0"
  provider_version: "~> 5.0"
  default_region: null  # Falls back to the first resource's region, then us-east-1
  provider: aws  # aws, google
  project: null  # GCP project id
  backend: null
  # backend:
  #   type: s3  # s3, local, remote, gcs, azurerm
  #   config:
  #     bucket: my-terraform-state
  #     key: imported/terraform.tfstate
  #     region: us-east-1

output:
  output_directory: "./terraform_output"
  overwrite_existing: false
  write_sensitive_values: false  # Writes sensitive.auto.tfvars and a .gitignore

logging:
  level: INFO  # DEBUG, INFO, WARNING, ERROR, CRITICAL
  format: "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
  file: null  # Log file path (null for no file logging)
  console: true
  max_file_size: 10485760  # 10MB
  backup_count: 5
"""


if __name__ == "__main__":
    # Example usage
    config_manager = ConfigManager()
    config = config_manager.load_config()

    print("Configuration Summary:")
    summary = config_manager.get_config_summary()
    for key, value in summary.items():
        print(f"  {key}: {value}")
