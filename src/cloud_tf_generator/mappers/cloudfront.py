#!/usr/bin/env python3
"""
CloudFront Resource Mappers

CloudFront API responses wrap collections as ``{"quantity": n, "items": [...]}``;
both that shape and plain lists are accepted.
"""

from typing import Any, Dict, List

from ..models import is_sensitive_field, to_terraform_identifier
from .base import ResourceMapper, set_if


def items(value: Any) -> List[Any]:
    if isinstance(value, dict):
        return list(value.get('items') or value.get('Items') or [])
    if isinstance(value, list):
        return value
    return []


class CloudFrontDistributionMapper(ResourceMapper):
    source_type = 'AWS::CloudFront::Distribution'
    terraform_type = 'aws_cloudfront_distribution'

    def map(self, resource, context):
        props = resource.properties
        name = self.generate_resource_name(resource)
        attributes: Dict[str, Any] = {'enabled': bool(props.get('enabled', True))}

        if props.get('isIPV6Enabled') is not None:
            attributes['is_ipv6_enabled'] = bool(props['isIPV6Enabled'])
        set_if(attributes, 'comment', props.get('comment'))
        set_if(attributes, 'default_root_object', props.get('defaultRootObject'))
        set_if(attributes, 'price_class', props.get('priceClass'))
        set_if(attributes, 'web_acl_id', props.get('webAclId'))
        set_if(attributes, 'http_version', props.get('httpVersion'))
        set_if(attributes, 'aliases', items(props.get('aliases')))

        origins = [self._origin(name, origin, context) for origin in items(props.get('origins'))]
        set_if(attributes, 'origin', origins)

        if props.get('defaultCacheBehavior'):
            attributes['default_cache_behavior'] = self.create_block(
                self._cache_behavior(props['defaultCacheBehavior']))
        set_if(attributes, 'ordered_cache_behavior', [
            self.create_block(self._cache_behavior(b)) for b in items(props.get('cacheBehaviors'))
        ])

        cert = props.get('viewerCertificate')
        if cert:
            cert_attrs: Dict[str, Any] = {}
            if cert.get('cloudFrontDefaultCertificate'):
                cert_attrs['cloudfront_default_certificate'] = True
            set_if(cert_attrs, 'acm_certificate_arn', cert.get('acmCertificateArn'))
            set_if(cert_attrs, 'iam_certificate_id', cert.get('iamCertificateId'))
            set_if(cert_attrs, 'ssl_support_method', cert.get('sslSupportMethod'))
            set_if(cert_attrs, 'minimum_protocol_version', cert.get('minimumProtocolVersion'))
            attributes['viewer_certificate'] = self.create_block(cert_attrs)

        # restrictions is required by the provider; default to no geo restriction
        geo = (props.get('restrictions') or {}).get('geoRestriction')
        geo_attrs: Dict[str, Any] = {'restriction_type': 'none'}
        if geo:
            geo_attrs['restriction_type'] = geo.get('restrictionType') or 'none'
            set_if(geo_attrs, 'locations', items(geo.get('locations')) or geo.get('locations'))
        attributes['restrictions'] = self.create_block({
            'geo_restriction': self.create_block(geo_attrs),
        })

        error_blocks = []
        for err in items(props.get('customErrorResponses')):
            err_attrs: Dict[str, Any] = {}
            set_if(err_attrs, 'error_code', err.get('errorCode'))
            set_if(err_attrs, 'response_page_path', err.get('responsePagePath'))
            set_if(err_attrs, 'response_code', err.get('responseCode'))
            if err.get('errorCachingMinTTL') is not None:
                err_attrs['error_caching_min_ttl'] = err['errorCachingMinTTL']
            if err_attrs:
                error_blocks.append(self.create_block(err_attrs))
        set_if(attributes, 'custom_error_response', error_blocks)

        logging_config = props.get('logging') or {}
        if logging_config.get('bucket'):
            log_attrs: Dict[str, Any] = {'bucket': logging_config['bucket']}
            if logging_config.get('includeCookies') is not None:
                log_attrs['include_cookies'] = bool(logging_config['includeCookies'])
            set_if(log_attrs, 'prefix', logging_config.get('prefix'))
            attributes['logging_config'] = self.create_block(log_attrs)

        set_if(attributes, 'tags', self.map_tags(resource.tags))
        return self.build(resource, attributes)

    def _origin(self, name: str, origin: Dict[str, Any], context):
        attrs: Dict[str, Any] = {}
        set_if(attrs, 'origin_id', origin.get('id'))
        set_if(attrs, 'domain_name', origin.get('domainName'))
        set_if(attrs, 'origin_path', origin.get('originPath'))
        set_if(attrs, 'connection_attempts', origin.get('connectionAttempts'))
        set_if(attrs, 'connection_timeout', origin.get('connectionTimeout'))

        s3_identity = (origin.get('s3OriginConfig') or {}).get('originAccessIdentity')
        if s3_identity is not None:
            attrs['s3_origin_config'] = self.create_block({'origin_access_identity': s3_identity})

        custom = origin.get('customOriginConfig')
        if custom:
            custom_attrs: Dict[str, Any] = {
                'http_port': custom.get('httpPort', 80),
                'https_port': custom.get('httpsPort', 443),
                'origin_protocol_policy': custom.get('originProtocolPolicy') or 'https-only',
                'origin_ssl_protocols': items(custom.get('originSslProtocols')) or ['TLSv1.2'],
            }
            set_if(custom_attrs, 'origin_keepalive_timeout', custom.get('originKeepaliveTimeout'))
            set_if(custom_attrs, 'origin_read_timeout', custom.get('originReadTimeout'))
            attrs['custom_origin_config'] = self.create_block(custom_attrs)

        shield = origin.get('originShield')
        if shield and shield.get('enabled'):
            attrs['origin_shield'] = self.create_block({
                'enabled': True,
                'origin_shield_region': shield.get('originShieldRegion') or '',
            })

        headers = []
        for header in items(origin.get('customHeaders')):
            header_name = header.get('headerName')
            value = header.get('headerValue')
            if not header_name or value is None:
                continue
            if is_sensitive_field(header_name):
                value = context.mark_sensitive(
                    f"cloudfront_{name}_{to_terraform_identifier(header_name)}", value,
                    f"Origin header {header_name} of distribution {name}",
                )
            headers.append(self.create_block({'name': header_name, 'value': value}))
        set_if(attrs, 'custom_header', headers)

        return self.create_block(attrs)

    def _cache_behavior(self, behavior: Dict[str, Any]) -> Dict[str, Any]:
        attrs: Dict[str, Any] = {}
        set_if(attrs, 'path_pattern', behavior.get('pathPattern'))
        set_if(attrs, 'target_origin_id', behavior.get('targetOriginId'))
        set_if(attrs, 'viewer_protocol_policy', behavior.get('viewerProtocolPolicy'))
        set_if(attrs, 'allowed_methods', items(behavior.get('allowedMethods')))
        set_if(attrs, 'cached_methods', items(behavior.get('cachedMethods'))
               or items((behavior.get('allowedMethods') or {}).get('cachedMethods')
                        if isinstance(behavior.get('allowedMethods'), dict) else None))
        for source_key, target_key in (('minTTL', 'min_ttl'), ('maxTTL', 'max_ttl'),
                                       ('defaultTTL', 'default_ttl')):
            if behavior.get(source_key) is not None:
                attrs[target_key] = behavior[source_key]
        if behavior.get('compress') is not None:
            attrs['compress'] = bool(behavior['compress'])
        set_if(attrs, 'cache_policy_id', behavior.get('cachePolicyId'))
        set_if(attrs, 'origin_request_policy_id', behavior.get('originRequestPolicyId'))
        set_if(attrs, 'response_headers_policy_id', behavior.get('responseHeadersPolicyId'))

        forwarded = behavior.get('forwardedValues')
        if forwarded:
            fv_attrs: Dict[str, Any] = {'query_string': bool(forwarded.get('queryString', False))}
            set_if(fv_attrs, 'headers', items(forwarded.get('headers')))
            cookies = forwarded.get('cookies') or {}
            cookie_attrs: Dict[str, Any] = {'forward': cookies.get('forward') or 'none'}
            set_if(cookie_attrs, 'whitelisted_names', items(cookies.get('whitelistedNames')))
            fv_attrs['cookies'] = self.create_block(cookie_attrs)
            attrs['forwarded_values'] = self.create_block(fv_attrs)

        associations = []
        for association in items(behavior.get('lambdaFunctionAssociations')):
            assoc_attrs: Dict[str, Any] = {}
            set_if(assoc_attrs, 'event_type', association.get('eventType'))
            set_if(assoc_attrs, 'lambda_arn', association.get('lambdaFunctionArn'))
            if association.get('includeBody') is not None:
                assoc_attrs['include_body'] = bool(association['includeBody'])
            if assoc_attrs:
                associations.append(self.create_block(assoc_attrs))
        set_if(attrs, 'lambda_function_association', associations)

        return attrs

    def get_suggested_outputs(self, resource):
        return [
            self.output(resource, 'domain_name', 'domain_name', 'Domain name of CloudFront distribution'),
            self.output(resource, 'id', 'id', 'ID of CloudFront distribution'),
        ]


class CloudFrontOAIMapper(ResourceMapper):
    source_type = 'AWS::CloudFront::CloudFrontOriginAccessIdentity'
    terraform_type = 'aws_cloudfront_origin_access_identity'

    def map(self, resource, context):
        attributes: Dict[str, Any] = {}
        set_if(attributes, 'comment', resource.properties.get('comment'))
        return self.build(resource, attributes)


def get_cloudfront_mappers() -> List[ResourceMapper]:
    return [
        CloudFrontDistributionMapper(),
        CloudFrontOAIMapper(),
    ]
