from ec2.config import KeyFilePathError, ProvisioningConfig, RetryPolicy
from ec2.custom_ec2 import EC2Provisioner, create_ec2_client, create_ip_permission
from ec2.key_store import persist_key_material
from ec2.results import IngressRule, KeyPairRef, SecurityGroupRef, StepResult

__all__ = [
    'EC2Provisioner',
    'IngressRule',
    'KeyFilePathError',
    'KeyPairRef',
    'ProvisioningConfig',
    'RetryPolicy',
    'SecurityGroupRef',
    'StepResult',
    'create_ec2_client',
    'create_ip_permission',
    'persist_key_material',
]
