import hashlib
import json
from typing import Any, Dict

import boto3
from botocore.exceptions import ClientError

# Initialize the ACM client outside the handler for connection re-use
acm = boto3.client('acm')

REQUEST_RESOURCE_TYPE = 'Custom::CertificateRequest'
VALIDATION_RESOURCE_TYPE = 'Custom::CertificateValidation'

# Statuses after which ACM will never issue the certificate
TERMINAL_STATUSES = ('FAILED', 'VALIDATION_TIMED_OUT', 'REVOKED', 'EXPIRED', 'INACTIVE')

# Leaves room for the provider framework's envelope within CloudFormation's 4096 byte limit
MAX_DATA_BYTES = 3500


def _certificate_props(props: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'DomainName': props['DomainName'],
        'SubjectAlternativeNames': list(props.get('SubjectAlternativeNames') or [])
    }


def _request_certificate(event: Dict[str, Any]) -> Dict[str, Any]:
    props = _certificate_props(event['ResourceProperties'])
    params = {
        'DomainName': props['DomainName'],
        'ValidationMethod': 'DNS',
        # Retried deliveries of the same event must not request a second certificate
        'IdempotencyToken': hashlib.sha256(event['RequestId'].encode()).hexdigest()[:32]
    }
    if props['SubjectAlternativeNames']:
        params['SubjectAlternativeNames'] = props['SubjectAlternativeNames']

    arn = acm.request_certificate(**params)['CertificateArn']
    print(f"Requested certificate for {props['DomainName']}: {arn}")
    return {'PhysicalResourceId': arn}


def _delete_certificate(arn: str) -> Dict[str, Any]:
    # Failed creates leave a placeholder id rather than an ARN
    if not arn.startswith('arn:'):
        return {'PhysicalResourceId': arn}
    try:
        acm.delete_certificate(CertificateArn=arn)
        print(f"Deleted certificate {arn}")
    except ClientError as e:
        if e.response['Error']['Code'] != 'ResourceNotFoundException':
            raise
        print(f"Certificate {arn} already deleted")
    return {'PhysicalResourceId': arn}


def _on_request_event(event: Dict[str, Any]) -> Dict[str, Any]:
    request_type = event['RequestType']

    if request_type == 'Create':
        return _request_certificate(event)

    if request_type == 'Update':
        old_props = _certificate_props(event['OldResourceProperties'])
        new_props = _certificate_props(event['ResourceProperties'])
        if old_props == new_props:
            print(f"Certificate {event['PhysicalResourceId']} unchanged")
            return {'PhysicalResourceId': event['PhysicalResourceId']}
        # A new physical id makes CloudFormation delete the old certificate
        return _request_certificate(event)

    return _delete_certificate(event['PhysicalResourceId'])


def _on_validation_event(event: Dict[str, Any]) -> Dict[str, Any]:
    if event['RequestType'] == 'Delete':
        return {'PhysicalResourceId': event['PhysicalResourceId']}
    return {'PhysicalResourceId': event['ResourceProperties']['CertificateArn']}


def on_event(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Entry point invoked once per CloudFormation lifecycle event.
    1. Certificate requests are created, replaced or deleted in ACM.
    2. Validation waits only record which certificate they track.
    """
    print(f"{event['RequestType']} {event['ResourceType']} ({event.get('LogicalResourceId')})")
    if event['ResourceType'] == REQUEST_RESOURCE_TYPE:
        return _on_request_event(event)
    if event['ResourceType'] == VALIDATION_RESOURCE_TYPE:
        return _on_validation_event(event)
    raise ValueError(f"Unsupported resource type: {event['ResourceType']}")


def _describe(arn: str) -> Dict[str, Any]:
    return acm.describe_certificate(CertificateArn=arn)['Certificate']


def _request_complete(arn: str) -> Dict[str, Any]:
    """
    Flattens the validation options into resource attributes.
    CloudFormation rejects custom resource responses over 4 KB, so only the
    record fields are published (the ARN is already the physical id) and
    oversized payloads fail here with an explicit message.
    """
    options = _describe(arn).get('DomainValidationOptions', [])
    records = [option.get('ResourceRecord') for option in options]

    # ACM populates the records asynchronously after the request is accepted
    if not records or not all(records):
        print(f"Waiting for validation options of {arn}")
        return {'IsComplete': False}

    data = {}
    for index, record in enumerate(records):
        data[f'ValidationOptions.{index}.Type'] = record['Type']
        data[f'ValidationOptions.{index}.Name'] = record['Name']
        data[f'ValidationOptions.{index}.Value'] = record['Value']

    size = len(json.dumps(data))
    if size > MAX_DATA_BYTES:
        raise RuntimeError(
            f"Validation options of {arn} need {size} bytes, more than the {MAX_DATA_BYTES} "
            f"a custom resource response can carry; request fewer alternative names"
        )

    print(f"{len(records)} validation option(s) available for {arn}")
    return {'IsComplete': True, 'Data': data}


def _validation_complete(arn: str) -> Dict[str, Any]:
    certificate = _describe(arn)
    status = certificate['Status']

    if status == 'ISSUED':
        print(f"Certificate {arn} validated")
        return {'IsComplete': True, 'Data': {'CertificateArn': arn}}

    if status in TERMINAL_STATUSES:
        reason = certificate.get('FailureReason', 'unknown')
        raise RuntimeError(f"Certificate {arn} will not be issued: {status} ({reason})")

    print(f"Certificate {arn} is {status}")
    return {'IsComplete': False}


def is_complete(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Polled by the provider framework until the resource is ready.
    Failures are raised as-is; retries and timeouts belong to the framework.
    """
    if event['RequestType'] == 'Delete':
        return {'IsComplete': True}

    arn = event['PhysicalResourceId']
    if event['ResourceType'] == REQUEST_RESOURCE_TYPE:
        return _request_complete(arn)
    if event['ResourceType'] == VALIDATION_RESOURCE_TYPE:
        return _validation_complete(arn)
    raise ValueError(f"Unsupported resource type: {event['ResourceType']}")
