#!/usr/bin/env python3
"""
Unit tests for the data model and naming helpers
"""

import unittest
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../../src'))

from cloud_tf_generator.models import (
    DiscoveredResource, Reference, TerraformResource, is_excluded_field, is_sensitive_field,
    to_snake_case, to_terraform_identifier,
)


class TestNamingHelpers(unittest.TestCase):
    """Test identifier and key conversion"""

    def test_to_terraform_identifier(self):
        """Test display names become valid identifiers"""
        cases = {
            'web-server': 'web_server',
            'My App (prod)': 'my_app_prod',
            '123-bucket': '_123_bucket',
            'a--b__c': 'a_b_c',
            'trailing-': 'trailing',
            '---': 'resource',
            '': 'resource',
        }
        for name, expected in cases.items():
            with self.subTest(name=name):
                self.assertEqual(to_terraform_identifier(name), expected)

    def test_to_snake_case(self):
        """Test camelCase and PascalCase keys"""
        self.assertEqual(to_snake_case('masterUserPassword'), 'master_user_password')
        self.assertEqual(to_snake_case('DBInstanceIdentifier'), 'db_instance_identifier')
        self.assertEqual(to_snake_case('already_snake'), 'already_snake')
        self.assertEqual(to_snake_case('kebab-case'), 'kebab_case')

    def test_is_sensitive_field(self):
        """Test credential-like names are detected case-insensitively"""
        for name in ('masterUserPassword', 'API_TOKEN', 'ClientSecret', 'AccessKeyId',
                     'X-Auth-Header', 'private_key'):
            with self.subTest(name=name):
                self.assertTrue(is_sensitive_field(name))
        for name in ('TABLE_NAME', 'region', 'instanceType'):
            with self.subTest(name=name):
                self.assertFalse(is_sensitive_field(name))

    def test_is_excluded_field(self):
        """Test read-only API attributes are excluded"""
        for name in ('arn', 'Id', 'ownerId', 'CreateTime', 'LastModified', 'state'):
            with self.subTest(name=name):
                self.assertTrue(is_excluded_field(name))
        self.assertFalse(is_excluded_field('instanceType'))


class TestDiscoveredResource(unittest.TestCase):
    """Test the DiscoveredResource input record"""

    def test_from_dict_camel_case(self):
        """Test scanner exports with camelCase keys"""
        resource = DiscoveredResource.from_dict({
            'id': 'vpc-1',
            'type': 'AWS::EC2::VPC',
            'region': 'us-east-1',
            'discoveredAt': '2024-01-15T10:00:00Z',
        })
        self.assertEqual(resource.name, 'vpc-1')
        self.assertEqual(resource.display_name, 'vpc-1')
        self.assertEqual(resource.discovered_at, '2024-01-15T10:00:00Z')
        self.assertIsNone(resource.arn)

    def test_from_dict_snake_case(self):
        """Test snake_case keys and self links"""
        resource = DiscoveredResource.from_dict({
            'id': 99,
            'type': 'compute.googleapis.com/Disk',
            'self_link': 'https://www.googleapis.com/compute/v1/projects/p/zones/z/disks/data',
            'discovered_at': '2024-02-01T00:00:00Z',
            'name': 'data',
        })
        self.assertEqual(resource.id, '99')
        self.assertTrue(resource.arn.endswith('/disks/data'))
        self.assertEqual(resource.discovered_at, '2024-02-01T00:00:00Z')

    def test_to_dict(self):
        """Test records convert back to camelCase dictionaries"""
        resource = DiscoveredResource(id='b', type='AWS::S3::Bucket', tags={'k': 'v'})
        data = resource.to_dict()

        self.assertEqual(data['name'], 'b')
        self.assertEqual(data['tags'], {'k': 'v'})
        self.assertIn('discoveredAt', data)
        self.assertEqual(DiscoveredResource.from_dict(data), resource)


class TestTerraformResource(unittest.TestCase):
    """Test TerraformResource"""

    def test_address(self):
        """Test the type.name address"""
        resource = TerraformResource(type='aws_vpc', name='main')
        self.assertEqual(resource.address, 'aws_vpc.main')

    def test_reference_is_hashable(self):
        """Test references compare by value"""
        self.assertEqual(Reference('var.a'), Reference('var.a'))
        self.assertEqual(len({Reference('var.a'), Reference('var.a')}), 1)


if __name__ == '__main__':
    unittest.main()
