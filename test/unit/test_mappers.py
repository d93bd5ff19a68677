#!/usr/bin/env python3
"""
Unit tests for the resource mappers
"""

import json
import unittest
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../../src'))

from cloud_tf_generator.context import MappingContext
from cloud_tf_generator.mappers.base import last_segment, name_from_arn, set_if
from cloud_tf_generator.mappers.cloudfront import CloudFrontDistributionMapper
from cloud_tf_generator.mappers.containers import ECSTaskDefinitionMapper
from cloud_tf_generator.mappers.dynamodb import DynamoDBTableMapper
from cloud_tf_generator.mappers.ec2 import EC2InstanceMapper, SecurityGroupMapper
from cloud_tf_generator.mappers.gcp import (
    ComputeInstanceMapper, ServiceAccountMapper, StorageBucketMapper,
)
from cloud_tf_generator.mappers.iam import IAMPolicyMapper, IAMRoleMapper
from cloud_tf_generator.mappers.lambda_ import LambdaFunctionMapper
from cloud_tf_generator.mappers.rds import RDSInstanceMapper
from cloud_tf_generator.mappers.s3 import S3BucketMapper
from cloud_tf_generator.mappers.vpc import SubnetMapper, VPCEndpointMapper, VPCMapper
from cloud_tf_generator.models import Block, Reference
from test.fixtures.sample_discovered_resources import (
    API_TOKEN, BUCKET_RECORD, DB_PASSWORD, GCP_BUCKET_RECORD, GCP_INSTANCE_RECORD,
    GCP_SERVICE_ACCOUNT_RECORD, INSTANCE_RECORD, LAMBDA_RECORD, MINIMAL_INSTANCE_RECORD,
    POLICY_RECORD, RDS_RECORD, ROLE_RECORD, SECURITY_GROUP_RECORD, SUBNET_RECORD, TABLE_RECORD,
    TASK_DB_PASSWORD, TASK_DEFINITION_RECORD, VPC_RECORD, make_resource,
)


class TestMapperHelpers(unittest.TestCase):
    """Test the shared mapper helpers"""

    def test_set_if(self):
        """Test empty values are skipped"""
        attributes = {}
        for key, value in [('a', None), ('b', ''), ('c', []), ('d', {}), ('e', 0), ('f', False)]:
            set_if(attributes, key, value)
        self.assertEqual(attributes, {'e': 0, 'f': False})

    def test_name_from_arn(self):
        """Test names are taken from the last path segment after the marker"""
        arn = 'arn:aws:iam::123456789012:instance-profile/app/web-profile'
        self.assertEqual(name_from_arn(arn, 'instance-profile'), 'web-profile')
        self.assertIsNone(name_from_arn(arn, 'role'))
        self.assertIsNone(name_from_arn(None, 'role'))

    def test_last_segment(self):
        """Test trailing segment of self links"""
        self.assertEqual(last_segment('zones/us-central1-a/'), 'us-central1-a')
        self.assertEqual(last_segment('e2-small'), 'e2-small')
        self.assertIsNone(last_segment(''))


class TestEC2Mappers(unittest.TestCase):
    """Test EC2 and VPC mappers"""

    def setUp(self):
        self.context = MappingContext()

    def test_minimal_instance(self):
        """Test an instance with only an AMI and type"""
        mapper = EC2InstanceMapper()
        resource = make_resource(MINIMAL_INSTANCE_RECORD)
        tf = mapper.map(resource, self.context)

        self.assertEqual(tf.type, 'aws_instance')
        self.assertEqual(tf.name, 'i_minimal')
        self.assertEqual(tf.attributes, {'ami': 'ami-12345678', 'instance_type': 't2.micro'})
        self.assertEqual(tf.lifecycle.ignore_changes, ['ami', 'user_data'])
        self.assertIs(tf.source_resource, resource)
        self.assertEqual(mapper.get_import_id(resource), 'i-minimal')

    def test_instance_literal_fallbacks(self):
        """Test unresolved subnet and security groups stay as literal ids"""
        tf = EC2InstanceMapper().map(make_resource(INSTANCE_RECORD), self.context)

        self.assertEqual(tf.attributes['subnet_id'], 'subnet-11112222')
        self.assertEqual(tf.attributes['vpc_security_group_ids'], ['sg-33334444'])
        self.assertTrue(tf.attributes['monitoring'])
        self.assertEqual(tf.attributes['tags'], {'Name': 'web-server'})

    def test_cross_references(self):
        """Test references resolve once the targets are registered"""
        records = [
            (VPCMapper(), VPC_RECORD),
            (SubnetMapper(), SUBNET_RECORD),
            (SecurityGroupMapper(), SECURITY_GROUP_RECORD),
        ]
        mapped = {}
        for mapper, record in records:
            tf = mapper.map(make_resource(record), self.context)
            self.context.register_resource(tf)
            mapped[tf.type] = tf

        instance = EC2InstanceMapper().map(make_resource(INSTANCE_RECORD), self.context)

        self.assertEqual(mapped['aws_subnet'].attributes['vpc_id'], Reference('aws_vpc.main_vpc.id'))
        self.assertEqual(mapped['aws_security_group'].attributes['vpc_id'],
                         Reference('aws_vpc.main_vpc.id'))
        self.assertEqual(instance.attributes['subnet_id'],
                         Reference('aws_subnet.public_subnet_1a.id'))
        self.assertEqual(instance.attributes['vpc_security_group_ids'],
                         [Reference('aws_security_group.web_sg.id')])

    def test_security_group_rules(self):
        """Test ingress and egress rules become block lists"""
        tf = SecurityGroupMapper().map(make_resource(SECURITY_GROUP_RECORD), self.context)

        ingress = tf.attributes['ingress']
        self.assertEqual(len(ingress), 1)
        self.assertIsInstance(ingress[0], Block)
        self.assertEqual(ingress[0].attributes, {
            'from_port': 443,
            'to_port': 443,
            'protocol': 'tcp',
            'cidr_blocks': ['0.0.0.0/0'],
            'description': 'HTTPS',
        })
        self.assertEqual(tf.attributes['egress'][0].attributes['protocol'], '-1')
        self.assertTrue(tf.lifecycle.create_before_destroy)

    def test_vpc_outputs(self):
        """Test suggested VPC outputs"""
        resource = make_resource(VPC_RECORD)
        outputs = VPCMapper().get_suggested_outputs(resource)

        self.assertEqual([o.name for o in outputs], ['main_vpc_id', 'main_vpc_cidr_block'])
        self.assertEqual(outputs[0].value, 'aws_vpc.main_vpc.id')
        self.assertIn('main-vpc', outputs[0].description)


class TestDataMappers(unittest.TestCase):
    """Test storage, database and serverless mappers"""

    def setUp(self):
        self.context = MappingContext()

    def test_s3_bucket(self):
        """Test bucket name and import id"""
        mapper = S3BucketMapper()
        resource = make_resource(BUCKET_RECORD)
        tf = mapper.map(resource, self.context)

        self.assertEqual(tf.attributes['bucket'], 'my-app-assets')
        self.assertEqual(mapper.get_import_id(resource), 'my-app-assets')
        self.assertEqual([o.name for o in mapper.get_suggested_outputs(resource)],
                         ['my_app_assets_arn', 'my_app_assets_bucket_domain_name'])

    def test_rds_password_becomes_sensitive_variable(self):
        """Test the master password never stays a literal"""
        tf = RDSInstanceMapper().map(make_resource(RDS_RECORD), self.context)

        self.assertEqual(tf.attributes['password'],
                         Reference('var.sensitive_db_orders_db_master_user_password'))
        self.assertEqual(tf.attributes['username'], Reference('var.db_orders_db_username'))
        self.assertNotIn(DB_PASSWORD, repr(tf.attributes))
        self.assertEqual(self.context.get_sensitive_values(),
                         {'sensitive_db_orders_db_master_user_password': DB_PASSWORD})
        self.assertEqual(tf.lifecycle.ignore_changes, ['password'])
        self.assertTrue(tf.attributes['skip_final_snapshot'])
        self.assertTrue(tf.attributes['multi_az'])

    def test_rds_without_password(self):
        """Test a plain sensitive variable is declared when no password is known"""
        record = dict(RDS_RECORD, properties={'dbInstanceIdentifier': 'orders-db',
                                              'engine': 'postgres'})
        tf = RDSInstanceMapper().map(make_resource(record), self.context)

        self.assertEqual(tf.attributes['password'], Reference('var.db_orders_db_password'))
        self.assertNotIn('username', tf.attributes)
        self.assertEqual(self.context.get_sensitive_values(), {})
        self.assertTrue(self.context.get_variables()[0].sensitive)

    def test_lambda_environment_secret(self):
        """Test credential-like environment variables are extracted"""
        tf = LambdaFunctionMapper().map(make_resource(LAMBDA_RECORD), self.context)

        env = tf.attributes['environment'].attributes['variables']
        self.assertEqual(env['TABLE_NAME'], 'orders')
        self.assertEqual(env['API_TOKEN'], Reference('var.sensitive_lambda_order_processor_api_token'))
        self.assertEqual(self.context.get_sensitive_values(),
                         {'sensitive_lambda_order_processor_api_token': API_TOKEN})
        self.assertEqual(tf.attributes['filename'], Reference('var.lambda_order_processor_filename'))
        self.assertEqual(tf.attributes['role'], LAMBDA_RECORD['properties']['role'])
        self.assertEqual(tf.lifecycle.ignore_changes, ['filename', 'source_code_hash'])

        filename_var = self.context.get_variables()[0]
        self.assertEqual(filename_var.default, 'placeholder.zip')

    def test_lambda_role_reference(self):
        """Test the execution role resolves to the role's ARN attribute"""
        role = IAMRoleMapper().map(make_resource(ROLE_RECORD), self.context)
        self.context.register_resource(role)

        tf = LambdaFunctionMapper().map(make_resource(LAMBDA_RECORD), self.context)
        self.assertEqual(tf.attributes['role'], Reference('aws_iam_role.lambda_exec.arn'))

    def test_iam_role_policy_document(self):
        """Test assume role policy is compact JSON and default path is omitted"""
        mapper = IAMRoleMapper()
        resource = make_resource(ROLE_RECORD)
        tf = mapper.map(resource, self.context)

        policy = tf.attributes['assume_role_policy']
        self.assertIsInstance(policy, str)
        self.assertNotIn(' ', policy)
        self.assertEqual(json.loads(policy), ROLE_RECORD['properties']['assumeRolePolicyDocument'])
        self.assertNotIn('path', tf.attributes)
        self.assertEqual(mapper.get_import_id(resource), 'lambda-exec')

    def test_iam_policy_variables_escaped(self):
        """Test IAM policy variables are not read as Terraform interpolation"""
        tf = IAMPolicyMapper().map(make_resource(POLICY_RECORD), self.context)

        policy = tf.attributes['policy']
        self.assertIn('arn:aws:s3:::home-bucket/$${aws:username}/*', policy)
        self.assertNotIn('/${aws:username}', policy)
        self.assertEqual(tf.attributes['name'], 'home-prefix')

    def test_string_policy_document_escaped(self):
        """Test policy documents given as strings are escaped too"""
        record = dict(ROLE_RECORD, properties={
            'roleName': 'lambda-exec',
            'assumeRolePolicyDocument': '{"Condition":"%{if x}${aws:PrincipalTag/team}"}',
        })
        tf = IAMRoleMapper().map(make_resource(record), self.context)
        self.assertEqual(tf.attributes['assume_role_policy'],
                         '{"Condition":"%%{if x}$${aws:PrincipalTag/team}"}')

    def test_vpc_endpoint_policy_escaped(self):
        """Test endpoint policies get the same escaping"""
        record = {
            'id': 'vpce-1', 'type': 'AWS::EC2::VPCEndpoint', 'region': 'us-east-1',
            'properties': {
                'serviceName': 'com.amazonaws.us-east-1.s3',
                'policyDocument': '{"Resource":"arn:aws:s3:::b/${aws:userid}"}',
            },
        }
        tf = VPCEndpointMapper().map(make_resource(record), self.context)
        self.assertEqual(tf.attributes['policy'], '{"Resource":"arn:aws:s3:::b/$${aws:userid}"}')

    def test_ecs_environment_secret(self):
        """Test credential-like container environment values become sensitive variables"""
        tf = ECSTaskDefinitionMapper().map(make_resource(TASK_DEFINITION_RECORD), self.context)

        definitions = tf.attributes['container_definitions']
        self.assertNotIn(TASK_DB_PASSWORD, definitions)
        container = json.loads(definitions)[0]
        self.assertEqual(container['environment'], [
            {'name': 'LOG_LEVEL', 'value': 'info'},
            {'name': 'DB_PASSWORD', 'value': '${var.sensitive_ecs_web_app_app_db_password}'},
        ])
        self.assertEqual(container['command'], ['sh', '-c', 'echo $${HOSTNAME}'])
        self.assertEqual(self.context.get_sensitive_values(),
                         {'sensitive_ecs_web_app_app_db_password': TASK_DB_PASSWORD})
        variable = self.context.get_variables()[0]
        self.assertTrue(variable.sensitive)

    def test_dynamodb_table(self):
        """Test key schema and attribute definitions"""
        mapper = DynamoDBTableMapper()
        resource = make_resource(TABLE_RECORD)
        tf = mapper.map(resource, self.context)

        self.assertEqual(tf.attributes['hash_key'], 'pk')
        self.assertEqual(tf.attributes['range_key'], 'sk')
        self.assertEqual(tf.attributes['billing_mode'], 'PAY_PER_REQUEST')
        self.assertEqual(len(tf.attributes['attribute']), 2)
        self.assertNotIn('read_capacity', tf.attributes)
        self.assertEqual(mapper.get_import_id(resource), 'orders')

    def test_dynamodb_without_hash_key(self):
        """Test a table lacking a partition key cannot be mapped"""
        record = dict(TABLE_RECORD, properties={'tableName': 'broken', 'keySchema': []})
        self.assertIsNone(DynamoDBTableMapper().map(make_resource(record), self.context))


class TestCloudFrontMapper(unittest.TestCase):
    """Test the CloudFront distribution mapper"""

    def setUp(self):
        self.context = MappingContext()
        self.mapper = CloudFrontDistributionMapper()

    def _record(self, **properties):
        return {
            'id': 'E1ABCDEF',
            'type': 'AWS::CloudFront::Distribution',
            'region': 'global',
            'name': 'site-cdn',
            'properties': properties,
        }

    def test_restrictions_default(self):
        """Test geo restriction defaults to none"""
        tf = self.mapper.map(make_resource(self._record()), self.context)

        self.assertTrue(tf.attributes['enabled'])
        geo = tf.attributes['restrictions'].attributes['geo_restriction']
        self.assertEqual(geo.attributes, {'restriction_type': 'none'})

    def test_origins_and_secret_headers(self):
        """Test origins accept the items wrapper and secret headers are extracted"""
        record = self._record(
            origins={'items': [{
                'id': 'api',
                'domainName': 'api.example.com',
                'customOriginConfig': {'originProtocolPolicy': 'https-only'},
                'customHeaders': {'items': [
                    {'headerName': 'X-Origin-Secret', 'headerValue': 'abc123'},
                    {'headerName': 'X-Env', 'headerValue': 'prod'},
                ]},
            }]},
            restrictions={'geoRestriction': {'restrictionType': 'whitelist',
                                             'locations': {'items': ['US', 'CA']}}},
        )
        tf = self.mapper.map(make_resource(record), self.context)

        origin = tf.attributes['origin'][0].attributes
        self.assertEqual(origin['origin_id'], 'api')
        custom = origin['custom_origin_config'].attributes
        self.assertEqual(custom['http_port'], 80)
        self.assertEqual(custom['origin_ssl_protocols'], ['TLSv1.2'])

        headers = [h.attributes for h in origin['custom_header']]
        self.assertEqual(headers[0]['value'],
                         Reference('var.sensitive_cloudfront_site_cdn_x_origin_secret'))
        self.assertEqual(headers[1]['value'], 'prod')
        self.assertEqual(self.context.get_sensitive_values(),
                         {'sensitive_cloudfront_site_cdn_x_origin_secret': 'abc123'})

        geo = tf.attributes['restrictions'].attributes['geo_restriction'].attributes
        self.assertEqual(geo, {'restriction_type': 'whitelist', 'locations': ['US', 'CA']})


class TestGoogleMappers(unittest.TestCase):
    """Test google provider mappers"""

    def setUp(self):
        self.context = MappingContext()

    def test_compute_instance(self):
        """Test only the first network interface is mapped"""
        mapper = ComputeInstanceMapper()
        resource = make_resource(GCP_INSTANCE_RECORD)
        tf = mapper.map(resource, self.context)

        self.assertEqual(tf.type, 'google_compute_instance')
        self.assertEqual(tf.attributes['machine_type'], 'e2-standard-2')
        self.assertEqual(tf.attributes['zone'], 'us-central1-a')
        self.assertEqual(tf.attributes['project'], Reference('var.project'))
        self.assertEqual(tf.attributes['labels'], {'env': 'dev'})
        self.assertEqual(tf.attributes['network_interface'].attributes,
                         {'network': 'default', 'subnetwork': 'default', 'network_ip': '10.128.0.2'})
        boot = tf.attributes['boot_disk'].attributes['initialize_params'].attributes
        self.assertEqual(boot['image'], 'debian-cloud/debian-12')
        self.assertEqual(tf.attributes['service_account'].attributes['scopes'], ['cloud-platform'])

    def test_boot_disk_without_image(self):
        """Test an empty image is never emitted for the boot disk"""
        record = json.loads(json.dumps(GCP_INSTANCE_RECORD))
        disk_link = 'https://www.googleapis.com/compute/v1/projects/p/zones/us-central1-a/disks/api-vm'
        record['properties']['disks'] = [{'boot': True, 'source': disk_link}]
        tf = ComputeInstanceMapper().map(make_resource(record), self.context)
        self.assertEqual(tf.attributes['boot_disk'].attributes, {'source': disk_link})

        record['properties']['disks'] = []
        tf = ComputeInstanceMapper().map(make_resource(record), self.context)
        self.assertEqual(tf.attributes['boot_disk'].attributes, {})

    def test_import_id_placeholders(self):
        """Test project placeholder is used when no project is configured"""
        resource = make_resource(GCP_INSTANCE_RECORD)

        self.assertEqual(ComputeInstanceMapper().get_import_id(resource),
                         'projects/{{project}}/zones/us-central1-a/instances/api-vm')
        self.assertEqual(ComputeInstanceMapper(project='demo-project').get_import_id(resource),
                         'projects/demo-project/zones/us-central1-a/instances/api-vm')

    def test_bucket_and_service_account(self):
        """Test bucket import id is the name and service accounts use the email"""
        bucket = make_resource(GCP_BUCKET_RECORD)
        bucket_tf = StorageBucketMapper().map(bucket, self.context)
        self.assertEqual(bucket_tf.attributes['location'], 'US')
        self.assertEqual(StorageBucketMapper().get_import_id(bucket), 'demo-project-logs')

        account = make_resource(GCP_SERVICE_ACCOUNT_RECORD)
        mapper = ServiceAccountMapper(project='demo-project')
        account_tf = mapper.map(account, self.context)
        self.assertEqual(account_tf.attributes['account_id'], 'deployer')
        self.assertEqual(mapper.get_import_id(account),
                         'projects/demo-project/serviceAccounts/'
                         'deployer@demo-project.iam.gserviceaccount.com')


if __name__ == '__main__':
    unittest.main()
