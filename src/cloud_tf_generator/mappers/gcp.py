#!/usr/bin/env python3
"""
Google Cloud Resource Mappers

Source types are Cloud Asset Inventory type names such as
``compute.googleapis.com/Instance``. Every block is pinned to ``var.project``;
import ids fall back to ``{{project}}``, ``{{zone}}`` and ``{{region}}``
placeholders when the run has no project and the record lacks the location.
"""

import logging
from typing import Any, Dict, List, Optional

from .base import ResourceMapper, last_segment, set_if

logger = logging.getLogger(__name__)

PROJECT_PLACEHOLDER = '{{project}}'
ZONE_PLACEHOLDER = '{{zone}}'
REGION_PLACEHOLDER = '{{region}}'


class GoogleResourceMapper(ResourceMapper):
    """Base for google provider mappers"""

    provider = 'google'

    def __init__(self, project: Optional[str] = None):
        self.project = project

    def map_tags(self, tags):
        # GCP labels carry no reserved prefix
        return dict(sorted((tags or {}).items()))

    def project_reference(self):
        return self.create_reference('var.project')

    def project_id(self, resource) -> str:
        return self.project or resource.properties.get('project') or PROJECT_PLACEHOLDER

    def region(self, resource) -> str:
        return resource.region or REGION_PLACEHOLDER

    def zone(self, resource) -> str:
        return last_segment(resource.properties.get('zone')) or ZONE_PLACEHOLDER

    def location(self, resource) -> str:
        return resource.properties.get('location') or self.region(resource)

    def get_import_id(self, resource):
        return resource.arn or resource.id


class ComputeInstanceMapper(GoogleResourceMapper):
    source_type = 'compute.googleapis.com/Instance'
    terraform_type = 'google_compute_instance'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {
            'name': resource.display_name,
            'machine_type': last_segment(props.get('machineType')) or 'e2-medium',
        }
        set_if(attributes, 'zone', last_segment(props.get('zone')))
        attributes['project'] = self.project_reference()
        set_if(attributes, 'tags', props.get('tags'))

        disks = props.get('disks') or []
        boot = next((d for d in disks if d.get('boot')), disks[0] if disks else {})
        boot_attrs: Dict[str, Any] = {}
        if boot.get('sourceImage'):
            boot_attrs['initialize_params'] = self.create_block({'image': boot['sourceImage']})
        else:
            set_if(boot_attrs, 'source', boot.get('source'))
        attributes['boot_disk'] = self.create_block(boot_attrs)

        # Only the first interface is kept
        interfaces = props.get('networkInterfaces') or []
        if interfaces:
            if len(interfaces) > 1:
                logger.debug(f"{resource.display_name} has {len(interfaces)} network interfaces, "
                             f"mapping the first")
            nic = interfaces[0]
            nic_attrs: Dict[str, Any] = {'network': last_segment(nic.get('network')) or 'default'}
            set_if(nic_attrs, 'subnetwork', last_segment(nic.get('subnetwork')))
            set_if(nic_attrs, 'network_ip', nic.get('networkIP'))
            attributes['network_interface'] = self.create_block(nic_attrs)

        set_if(attributes, 'labels', self.map_tags(resource.tags))
        if props.get('canIpForward'):
            attributes['can_ip_forward'] = True

        accounts = props.get('serviceAccounts') or []
        if accounts:
            account = accounts[0]
            attributes['service_account'] = self.create_block({
                'email': account.get('email') or '',
                'scopes': account.get('scopes') or ['cloud-platform'],
            })

        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return (f"projects/{self.project_id(resource)}/zones/{self.zone(resource)}"
                f"/instances/{resource.display_name}")

    def get_suggested_outputs(self, resource):
        return [self.output(resource, 'self_link', 'self_link', 'Self link of compute instance')]


class ComputeDiskMapper(GoogleResourceMapper):
    source_type = 'compute.googleapis.com/Disk'
    terraform_type = 'google_compute_disk'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {'name': resource.display_name}
        set_if(attributes, 'zone', last_segment(props.get('zone')))
        attributes['project'] = self.project_reference()
        attributes['type'] = last_segment(props.get('type')) or 'pd-standard'
        attributes['size'] = int(props.get('sizeGb') or 10)
        set_if(attributes, 'image', props.get('sourceImage'))
        set_if(attributes, 'labels', self.map_tags(resource.tags))
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return (f"projects/{self.project_id(resource)}/zones/{self.zone(resource)}"
                f"/disks/{resource.display_name}")


class ComputeFirewallMapper(GoogleResourceMapper):
    source_type = 'compute.googleapis.com/Firewall'
    terraform_type = 'google_compute_firewall'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {
            'name': resource.display_name,
            'network': last_segment(props.get('network')) or 'default',
            'project': self.project_reference(),
            'direction': props.get('direction') or 'INGRESS',
        }
        if props.get('priority') is not None:
            attributes['priority'] = props['priority']
        set_if(attributes, 'source_ranges', props.get('sourceRanges'))
        set_if(attributes, 'destination_ranges', props.get('destinationRanges'))
        set_if(attributes, 'target_tags', props.get('targetTags'))
        set_if(attributes, 'source_tags', props.get('sourceTags'))
        set_if(attributes, 'allow', self._rules(props.get('allowed')))
        set_if(attributes, 'deny', self._rules(props.get('denied')))
        return self.build(resource, attributes)

    def _rules(self, rules) -> List[Any]:
        blocks = []
        for rule in rules or []:
            rule_attrs: Dict[str, Any] = {'protocol': rule.get('IPProtocol') or rule.get('protocol') or 'all'}
            set_if(rule_attrs, 'ports', rule.get('ports'))
            blocks.append(self.create_block(rule_attrs))
        return blocks

    def get_import_id(self, resource):
        return f"projects/{self.project_id(resource)}/global/firewalls/{resource.display_name}"


class ComputeNetworkMapper(GoogleResourceMapper):
    source_type = 'compute.googleapis.com/Network'
    terraform_type = 'google_compute_network'

    def map(self, resource, context):
        props = resource.properties
        auto_create = props.get('autoCreateSubnetworks')
        attributes: Dict[str, Any] = {
            'name': resource.display_name,
            'project': self.project_reference(),
            'auto_create_subnetworks': True if auto_create is None else bool(auto_create),
        }
        set_if(attributes, 'routing_mode', (props.get('routingConfig') or {}).get('routingMode'))
        set_if(attributes, 'mtu', props.get('mtu'))
        set_if(attributes, 'description', props.get('description'))
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return f"projects/{self.project_id(resource)}/global/networks/{resource.display_name}"

    def get_suggested_outputs(self, resource):
        return [self.output(resource, 'self_link', 'self_link', 'Self link of VPC network')]


class ComputeSubnetworkMapper(GoogleResourceMapper):
    source_type = 'compute.googleapis.com/Subnetwork'
    terraform_type = 'google_compute_subnetwork'

    def map(self, resource, context):
        props = resource.properties
        network = props.get('network')
        attributes: Dict[str, Any] = {
            'name': resource.display_name,
            'network': (self.resource_reference(context, network, last_segment(network), 'self_link')
                        if network else ''),
        }
        set_if(attributes, 'region', resource.region or last_segment(props.get('region')))
        attributes['ip_cidr_range'] = props.get('ipCidrRange') or ''
        attributes['project'] = self.project_reference()
        if props.get('privateIpGoogleAccess'):
            attributes['private_ip_google_access'] = True
        set_if(attributes, 'secondary_ip_range', [
            self.create_block({
                'range_name': r.get('rangeName') or '',
                'ip_cidr_range': r.get('ipCidrRange') or '',
            })
            for r in props.get('secondaryIpRanges') or []
        ])
        set_if(attributes, 'purpose', props.get('purpose'))
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return (f"projects/{self.project_id(resource)}/regions/{self.region(resource)}"
                f"/subnetworks/{resource.display_name}")


class StorageBucketMapper(GoogleResourceMapper):
    source_type = 'storage.googleapis.com/Bucket'
    terraform_type = 'google_storage_bucket'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {
            'name': resource.display_name,
            'location': props.get('location') or resource.region or 'US',
            'project': self.project_reference(),
        }
        set_if(attributes, 'storage_class', props.get('storageClass'))
        versioning = props.get('versioning')
        if isinstance(versioning, dict):
            versioning = versioning.get('enabled')
        if versioning:
            attributes['versioning'] = self.create_block({'enabled': True})
        if props.get('uniformBucketLevelAccess'):
            attributes['uniform_bucket_level_access'] = True
        set_if(attributes, 'labels', self.map_tags(resource.tags))
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return resource.display_name

    def get_suggested_outputs(self, resource):
        return [self.output(resource, 'url', 'url', 'URL of storage bucket')]


class ContainerClusterMapper(GoogleResourceMapper):
    source_type = 'container.googleapis.com/Cluster'
    terraform_type = 'google_container_cluster'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {
            'name': resource.display_name,
            'location': self.location(resource),
            'project': self.project_reference(),
        }
        set_if(attributes, 'network', props.get('network'))
        set_if(attributes, 'subnetwork', props.get('subnetwork'))
        set_if(attributes, 'min_master_version', props.get('initialClusterVersion'))
        set_if(attributes, 'resource_labels', self.map_tags(resource.tags))
        # Node pools are managed as separate resources
        attributes['remove_default_node_pool'] = True
        attributes['initial_node_count'] = 1
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return (f"projects/{self.project_id(resource)}/locations/{self.location(resource)}"
                f"/clusters/{resource.display_name}")

    def get_suggested_outputs(self, resource):
        return [self.output(resource, 'endpoint', 'endpoint', 'Endpoint of GKE cluster',
                            sensitive=True)]


class ServiceAccountMapper(GoogleResourceMapper):
    source_type = 'iam.googleapis.com/ServiceAccount'
    terraform_type = 'google_service_account'

    def map(self, resource, context):
        props = resource.properties
        email = props.get('email') or ''
        account_id = email.split('@')[0] if '@' in email else resource.display_name
        attributes: Dict[str, Any] = {
            'account_id': account_id,
            'display_name': props.get('displayName') or resource.display_name,
            'project': self.project_reference(),
        }
        set_if(attributes, 'description', props.get('description'))
        if props.get('disabled'):
            attributes['disabled'] = True
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        email = resource.properties.get('email') or resource.id
        return f"projects/{self.project_id(resource)}/serviceAccounts/{email}"

    def get_suggested_outputs(self, resource):
        return [self.output(resource, 'email', 'email', 'Email of service account')]


class CloudFunctionMapper(GoogleResourceMapper):
    source_type = 'cloudfunctions.googleapis.com/Function'
    terraform_type = 'google_cloudfunctions2_function'

    SERVICE_FIELDS = (
        ('availableMemory', 'available_memory'),
        ('timeoutSeconds', 'timeout_seconds'),
        ('maxInstanceCount', 'max_instance_count'),
        ('minInstanceCount', 'min_instance_count'),
        ('serviceAccountEmail', 'service_account_email'),
        ('ingressSettings', 'ingress_settings'),
    )

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {
            'name': resource.display_name,
            'location': self.location(resource),
            'project': self.project_reference(),
        }
        set_if(attributes, 'description', props.get('description'))

        build = props.get('buildConfig')
        if build:
            attributes['build_config'] = self.create_block({
                'runtime': build.get('runtime') or '',
                'entry_point': build.get('entryPoint') or '',
            })

        service = props.get('serviceConfig') or {}
        service_attrs: Dict[str, Any] = {}
        for source_key, target_key in self.SERVICE_FIELDS:
            set_if(service_attrs, target_key, service.get(source_key))
        if service_attrs:
            attributes['service_config'] = self.create_block(service_attrs)

        set_if(attributes, 'labels', self.map_tags(resource.tags))
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return (f"projects/{self.project_id(resource)}/locations/{self.location(resource)}"
                f"/functions/{resource.display_name}")


def get_gcp_mappers(project: Optional[str] = None) -> List[ResourceMapper]:
    return [
        ComputeInstanceMapper(project),
        ComputeDiskMapper(project),
        ComputeFirewallMapper(project),
        ComputeNetworkMapper(project),
        ComputeSubnetworkMapper(project),
        StorageBucketMapper(project),
        ContainerClusterMapper(project),
        ServiceAccountMapper(project),
        CloudFunctionMapper(project),
    ]
