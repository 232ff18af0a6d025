import os
from dataclasses import dataclass
from typing import Optional, Tuple

from botocore.config import Config

DEFAULT_REGION = 'us-east-1'
# Ubuntu Server 18.04 LTS (HVM), SSD Volume Type x64
DEFAULT_IMAGE_ID = 'ami-07ebfd5b3428b6f4d'
DEFAULT_SECURITY_GROUP_NAME = 'assignment4'
DEFAULT_SECURITY_GROUP_DESCRIPTION = 'Assignment 4 security group'
DEFAULT_KEY_PAIR_NAME = 'assignment4'
DEFAULT_INGRESS_PORTS = (22, 80)
DEFAULT_INGRESS_CIDR = '0.0.0.0/0'


class KeyFilePathError(ValueError):
    """Raised when the key file path cannot hold a private key file"""


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry settings handed to botocore.
    max_attempts counts the initial call, mode is one of 'legacy', 'standard', 'adaptive'.
    """
    max_attempts: int = 3
    mode: str = 'standard'

    def to_botocore_config(self) -> Config:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        return Config(retries={'max_attempts': self.max_attempts, 'mode': self.mode})


def default_key_file_path(key_pair_name=DEFAULT_KEY_PAIR_NAME):
    return os.path.join('~', 'Documents', f'{key_pair_name}.pem')


@dataclass
class ProvisioningConfig:
    region: str = DEFAULT_REGION
    image_id: str = DEFAULT_IMAGE_ID
    security_group_name: str = DEFAULT_SECURITY_GROUP_NAME
    security_group_description: str = DEFAULT_SECURITY_GROUP_DESCRIPTION
    key_pair_name: str = DEFAULT_KEY_PAIR_NAME
    ingress_ports: Tuple[int, ...] = DEFAULT_INGRESS_PORTS
    ingress_cidr: str = DEFAULT_INGRESS_CIDR
    key_file_path: Optional[str] = None
    retry_policy: Optional[RetryPolicy] = None

    def resolved_key_file_path(self) -> str:
        """Absolute key file path, defaulting to ~/Documents/<key pair name>.pem"""
        path = self.key_file_path or default_key_file_path(self.key_pair_name)
        return os.path.abspath(os.path.expanduser(path))

    def botocore_config(self) -> Optional[Config]:
        if self.retry_policy is None:
            return None
        return self.retry_policy.to_botocore_config()

    def validate(self):
        """Fail fast on a key file path that can never be written"""
        validate_key_file_path(self.resolved_key_file_path())
        return self


def validate_key_file_path(path):
    if os.path.isdir(path):
        raise KeyFilePathError(f"Key file path '{path}' is a directory, expected a file path")
    parent = os.path.dirname(path)
    if os.path.exists(parent) and not os.path.isdir(parent):
        raise KeyFilePathError(f"Parent of key file path '{path}' is not a directory")
