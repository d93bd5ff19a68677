#!/usr/bin/env python3
"""
Unit tests for the mapping context
"""

import unittest
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../../src'))

from cloud_tf_generator.context import MappingContext
from cloud_tf_generator.models import Reference, TerraformResource, TerraformVariable
from test.fixtures.sample_discovered_resources import VPC_RECORD, make_resource


class TestMappingContext(unittest.TestCase):
    """Test the MappingContext class"""

    def setUp(self):
        self.context = MappingContext()

    def test_variable_name_deduplication(self):
        """Test colliding variable names get numeric suffixes"""
        names = [self.context.add_variable(TerraformVariable(name='db_username', type='string'))
                 for _ in range(3)]

        self.assertEqual(names, ['db_username', 'db_username_1', 'db_username_2'])
        self.assertEqual([v.name for v in self.context.get_variables()], names)

    def test_mark_sensitive(self):
        """Test literals are moved into the sensitive store"""
        reference = self.context.mark_sensitive('db_password', 'hunter2')

        self.assertEqual(reference, Reference('var.sensitive_db_password'))
        self.assertEqual(self.context.get_sensitive_values(), {'sensitive_db_password': 'hunter2'})

        variable = self.context.get_variables()[0]
        self.assertEqual(variable.name, 'sensitive_db_password')
        self.assertTrue(variable.sensitive)
        self.assertEqual(variable.type, 'string')
        self.assertIsNone(variable.default)

    def test_mark_sensitive_collision(self):
        """Test two secrets with the same key keep distinct variables"""
        first = self.context.mark_sensitive('token', 'a')
        second = self.context.mark_sensitive('token', 'b')

        self.assertEqual(first.value, 'var.sensitive_token')
        self.assertEqual(second.value, 'var.sensitive_token_1')
        self.assertEqual(self.context.get_sensitive_values(),
                         {'sensitive_token': 'a', 'sensitive_token_1': 'b'})

    def test_sensitive_values_are_a_copy(self):
        """Test callers cannot mutate the stored secrets"""
        self.context.mark_sensitive('key', 'value')
        values = self.context.get_sensitive_values()
        values.clear()
        self.assertEqual(len(self.context.get_sensitive_values()), 1)

    def test_resource_reference(self):
        """Test registered resources resolve by ARN"""
        source = make_resource(VPC_RECORD)
        resource = TerraformResource(type='aws_vpc', name='main_vpc', source_resource=source)
        self.context.register_resource(resource)

        self.assertEqual(self.context.get_resource_reference(source.arn),
                         Reference('aws_vpc.main_vpc.id'))
        self.assertEqual(self.context.get_resource_reference(source.arn, 'arn'),
                         Reference('aws_vpc.main_vpc.arn'))
        self.assertEqual(self.context.get_resources(), [resource])

    def test_unregistered_reference(self):
        """Test unknown or empty identifiers resolve to None"""
        self.assertIsNone(self.context.get_resource_reference('arn:aws:ec2:us-east-1:1:vpc/vpc-x'))
        self.assertIsNone(self.context.get_resource_reference(None))
        self.assertIsNone(self.context.get_resource_reference(''))

    def test_resource_without_arn(self):
        """Test resources without an ARN are registered by address only"""
        resource = TerraformResource(type='aws_s3_bucket', name='logs')
        self.context.register_resource(resource)
        self.assertEqual(len(self.context.get_resources()), 1)
        self.assertIsNone(self.context.get_resource_reference('logs'))


if __name__ == '__main__':
    unittest.main()
