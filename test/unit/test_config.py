#!/usr/bin/env python3
"""
Unit tests for configuration loading and logging setup
"""

import json
import logging
import unittest
import sys
import os
import tempfile
import shutil
from unittest.mock import patch

import yaml

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../../src'))

from cloud_tf_generator.config import (
    ConfigManager, DEFAULT_CONFIG_TEMPLATE, LoggingConfig, ToolConfig, setup_logging,
)


class TestConfigManager(unittest.TestCase):
    """Test the ConfigManager class"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.manager = ConfigManager()
        # Keep real CLOUDTF_* variables and ./cloudtf-config.yaml out of the tests
        self.env_patch = patch.dict(os.environ, {}, clear=True)
        self.env_patch.start()
        self.cwd = os.getcwd()
        os.chdir(self.temp_dir)

    def tearDown(self):
        os.chdir(self.cwd)
        self.env_patch.stop()
        shutil.rmtree(self.temp_dir)

    def _write(self, name, content):
        path = os.path.join(self.temp_dir, name)
        with open(path, 'w') as f:
            f.write(content)
        return path

    def test_defaults(self):
        """Test defaults when no other source is present"""
        config = self.manager.load_config()

        self.assertIsInstance(config, ToolConfig)
        self.assertTrue(config.generator.generate_import_blocks)
        self.assertTrue(config.generator.generate_import_script)
        self.assertTrue(config.generator.organize_by_service)
        self.assertEqual(config.generator.provider, 'aws')
        self.assertEqual(config.generator.terraform_version, '1.5.0')
        self.assertIsNone(config.generator.default_region)
        self.assertEqual(config.output.output_directory, './terraform_output')
        self.assertFalse(config.output.write_sensitive_values)
        self.assertEqual(self.manager.get_config_summary()['sources'], ['defaults'])

    def test_yaml_file(self):
        """Test values from a YAML file"""
        path = self._write('config.yaml', yaml.dump({
            'generator': {'provider': 'google', 'project': 'demo', 'organize_by_service': False},
            'output': {'output_directory': '/tmp/tf'},
        }))
        config = self.manager.load_config(config_file=path)

        self.assertEqual(config.generator.provider, 'google')
        self.assertEqual(config.generator.project, 'demo')
        self.assertFalse(config.generator.organize_by_service)
        self.assertEqual(config.output.output_directory, '/tmp/tf')
        self.assertTrue(config.generator.generate_import_blocks)

    def test_json_file(self):
        """Test values from a JSON file"""
        path = self._write('config.json', json.dumps({
            'generator': {'backend': {'type': 'gcs', 'config': {'bucket': 'state'}}},
        }))
        config = self.manager.load_config(config_file=path)
        self.assertEqual(config.generator.backend, {'type': 'gcs', 'config': {'bucket': 'state'}})
        self.assertEqual(self.manager.get_config_summary()['backend'], 'gcs')

    def test_default_location(self):
        """Test ./cloudtf-config.yaml is picked up without --config"""
        self._write('cloudtf-config.yaml', 'generator:\n  default_region: eu-central-1\n')
        config = self.manager.load_config()
        self.assertEqual(config.generator.default_region, 'eu-central-1')

    def test_environment_variables(self):
        """Test CLOUDTF_* variables override the file"""
        path = self._write('config.yaml', 'generator:\n  default_region: us-east-2\n')
        os.environ.update({
            'CLOUDTF_REGION': 'eu-west-1',
            'CLOUDTF_IMPORT_SCRIPT': 'false',
            'CLOUDTF_OVERWRITE': 'TRUE',
            'CLOUDTF_LOG_LEVEL': 'DEBUG',
        })
        config = self.manager.load_config(config_file=path)

        self.assertEqual(config.generator.default_region, 'eu-west-1')
        self.assertFalse(config.generator.generate_import_script)
        self.assertTrue(config.output.overwrite_existing)
        self.assertEqual(config.logging.level, 'DEBUG')
        self.assertIn('environment', self.manager.get_config_summary()['sources'])

    def test_environment_ignored(self):
        """Test env_vars=False skips the environment"""
        os.environ['CLOUDTF_PROVIDER'] = 'google'
        config = self.manager.load_config(env_vars=False)
        self.assertEqual(config.generator.provider, 'aws')

    def test_cli_precedence(self):
        """Test CLI arguments override environment and file; None means unset"""
        path = self._write('config.yaml', 'generator:\n  default_region: us-east-2\n'
                                          '  generate_import_blocks: false\n')
        os.environ['CLOUDTF_REGION'] = 'eu-west-1'
        config = self.manager.load_config(config_file=path, cli_args={
            'region': 'ap-southeast-2',
            'import_blocks': None,
            'organize_by_service': False,
            'write_sensitive': True,
            'output_dir': None,
            'quiet': True,
        })

        self.assertEqual(config.generator.default_region, 'ap-southeast-2')
        self.assertFalse(config.generator.generate_import_blocks)
        self.assertFalse(config.generator.organize_by_service)
        self.assertTrue(config.output.write_sensitive_values)
        self.assertEqual(config.output.output_directory, './terraform_output')
        self.assertEqual(config.logging.level, 'WARNING')

    def test_invalid_values(self):
        """Test schema violations raise ValueError"""
        cases = [
            'generator:\n  provider: azure\n',
            'generator:\n  organize_by_service: "yes"\n',
            'generator:\n  backend:\n    type: consul\n',
            'logging:\n  level: LOUD\n',
        ]
        for content in cases:
            with self.subTest(content=content):
                path = self._write('bad.yaml', content)
                with self.assertRaises(ValueError):
                    ConfigManager().load_config(config_file=path)

    def test_unknown_key(self):
        """Test unknown keys are rejected"""
        path = self._write('bad.yaml', 'generator:\n  colour: blue\n')
        with self.assertRaises(ValueError):
            self.manager.load_config(config_file=path)

    def test_non_mapping_file(self):
        """Test a file that is not a mapping"""
        path = self._write('list.yaml', '- a\n- b\n')
        with self.assertRaises(ValueError):
            self.manager.load_config(config_file=path)

    def test_malformed_yaml(self):
        """Test YAML errors propagate"""
        path = self._write('broken.yaml', 'generator: [unclosed\n')
        with self.assertRaises(yaml.YAMLError):
            self.manager.load_config(config_file=path)

    def test_validate_file(self):
        """Test validate_file ignores the environment and requires the file"""
        os.environ['CLOUDTF_PROVIDER'] = 'google'
        path = self._write('config.yaml', 'output:\n  overwrite_existing: true\n')

        config = self.manager.validate_file(path)
        self.assertEqual(config.generator.provider, 'aws')
        self.assertTrue(config.output.overwrite_existing)

        with self.assertRaises(ValueError):
            self.manager.validate_file(os.path.join(self.temp_dir, 'missing.yaml'))

    def test_save_config_round_trip(self):
        """Test a saved configuration loads back unchanged"""
        self.manager.load_config(cli_args={'provider': 'google', 'project': 'demo'})
        for fmt in ('yaml', 'json'):
            with self.subTest(format=fmt):
                path = os.path.join(self.temp_dir, f'saved.{fmt}')
                self.manager.save_config(path, format=fmt)
                loaded = ConfigManager().load_config(config_file=path, env_vars=False)
                self.assertEqual(loaded, self.manager.config)

        with self.assertRaises(ValueError):
            self.manager.save_config(os.path.join(self.temp_dir, 'saved.toml'), format='toml')

    def test_default_template_is_valid(self):
        """Test the template written by init-config passes validation"""
        path = self._write('template.yaml', DEFAULT_CONFIG_TEMPLATE)
        config = self.manager.load_config(config_file=path)
        self.assertEqual(config, ToolConfig())


class TestSetupLogging(unittest.TestCase):
    """Test logging configuration"""

    def setUp(self):
        self.root = logging.getLogger()
        self.saved_handlers = list(self.root.handlers)
        self.saved_level = self.root.level
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        for handler in list(self.root.handlers):
            self.root.removeHandler(handler)
            handler.close()
        for handler in self.saved_handlers:
            self.root.addHandler(handler)
        self.root.setLevel(self.saved_level)
        shutil.rmtree(self.temp_dir)

    def test_console_and_file(self):
        """Test handlers and level are installed"""
        log_file = os.path.join(self.temp_dir, 'cloudtf.log')
        setup_logging(LoggingConfig(level='DEBUG', file=log_file))

        handler_types = [type(h).__name__ for h in self.root.handlers]
        self.assertEqual(handler_types, ['StreamHandler', 'RotatingFileHandler'])
        self.assertEqual(self.root.level, logging.DEBUG)

        logging.getLogger('cloud_tf_generator.test').debug('written to file')
        for handler in self.root.handlers:
            handler.flush()
        with open(log_file) as f:
            self.assertIn('written to file', f.read())

    def test_repeated_calls_do_not_duplicate(self):
        """Test handlers are replaced rather than added"""
        setup_logging(LoggingConfig())
        setup_logging(LoggingConfig())
        self.assertEqual(len(self.root.handlers), 1)

    def test_no_outputs(self):
        """Test a NullHandler is installed when console and file are off"""
        setup_logging(LoggingConfig(console=False, level='ERROR'))
        self.assertIsInstance(self.root.handlers[0], logging.NullHandler)
        self.assertEqual(self.root.level, logging.ERROR)


if __name__ == '__main__':
    unittest.main()
