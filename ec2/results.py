from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class StepResult:
    """Outcome of a best-effort step (ingress authorization, key file write)"""
    success: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls):
        return cls(success=True)

    @classmethod
    def failed(cls, reason):
        return cls(success=False, reason=str(reason))

    def __bool__(self):
        return self.success


@dataclass(frozen=True)
class IngressRule:
    protocol: str
    port: int
    cidr: str

    def to_ip_permission(self) -> Dict[str, Any]:
        """Render the rule as an entry of the EC2 IpPermissions list"""
        return {
            'IpProtocol': self.protocol,
            'FromPort': self.port,
            'ToPort': self.port,
            'IpRanges': [{'CidrIp': self.cidr}],
        }


@dataclass(frozen=True)
class SecurityGroupRef:
    name: str
    group_id: str
    created: bool = False


@dataclass(frozen=True)
class KeyPairRef:
    """
    Key pair name plus the private key material.
    The material is only returned by EC2 when the pair is created, so it is
    None for pairs that already existed. `persisted` is None when no file was written.
    """
    name: str
    created: bool = False
    key_material: Optional[str] = None
    persisted: Optional[StepResult] = None
