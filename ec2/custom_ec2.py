import logging
import sys

import boto3
from botocore.exceptions import ClientError

from ec2.config import DEFAULT_INGRESS_CIDR, ProvisioningConfig, validate_key_file_path
from ec2.key_store import persist_key_material
from ec2.results import IngressRule, KeyPairRef, SecurityGroupRef, StepResult

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def configure_logging(level=logging.INFO):
    logging.basicConfig(level=level, format=LOG_FORMAT)


def create_ec2_client(config):
    """Create an EC2 client bound to the configured region"""
    return boto3.client('ec2', region_name=config.region, config=config.botocore_config())


def create_ip_permission(port, cidr=DEFAULT_INGRESS_CIDR):
    """Ingress rule allowing tcp traffic on a single port from `cidr`"""
    return IngressRule(protocol='tcp', port=port, cidr=cidr)


class EC2Provisioner:
    """
    Provision the baseline EC2 resources for the assignment.
    - 1. Read-only listings
        def list_availability_zones: log every AZ in the region.
        def list_images: log the images matching the configured image id.
    - 2. Security group
        def ensure_security_group: get or create the group by name.
        def authorize_ingress: open the ingress rules (best effort).
    - 3. Key pair
        def ensure_key_pair: get or create the key pair, persist new key material.

        def run: run all of the above in order.
    """

    def __init__(self, config=None, ec2_client=None, logger=logger):
        self.config = config or ProvisioningConfig()
        self.logger = logger
        self.ec2_client = ec2_client or create_ec2_client(self.config)
        self.logger.info("EC2 client initialized for region %s", self.config.region)

    def list_availability_zones(self):
        response = self.ec2_client.describe_availability_zones()
        zones = response['AvailabilityZones']
        for zone in zones:
            self.logger.info(
                "Zone %s with status %s in region %s",
                zone['ZoneName'], zone.get('State'), zone.get('RegionName', self.config.region)
            )
        return zones

    def list_images(self):
        response = self.ec2_client.describe_images(
            Filters=[{'Name': 'image-id', 'Values': [self.config.image_id]}]
        )
        images = response['Images']
        for image in images:
            # EC2 only reports Platform for windows images
            self.logger.info(
                "Image %s with id %s on platform %s",
                image.get('Name'), image['ImageId'], image.get('Platform', 'linux')
            )
        return images

    def ensure_security_group(self, group_name=None):
        """
        Return the security group named `group_name`, creating it if absent.
        The first group with an exact name match wins. There is no locking, two
        concurrent runs can both create a group.
        """
        group_name = group_name or self.config.security_group_name
        response = self.ec2_client.describe_security_groups()

        for group in response['SecurityGroups']:
            if group['GroupName'] == group_name:
                self.logger.info("Security group found with id %s", group['GroupId'])
                return SecurityGroupRef(name=group_name, group_id=group['GroupId'])

        response = self.ec2_client.create_security_group(
            GroupName=group_name,
            Description=self.config.security_group_description
        )
        group_id = response['GroupId']
        self.logger.info("Created new security group with id %s", group_id)
        return SecurityGroupRef(name=group_name, group_id=group_id, created=True)

    def authorize_ingress(self, group_id, rules):
        """
        Authorize all `rules` on the group in a single request.
        A rejection (e.g. InvalidPermission.Duplicate on a rerun) is logged and
        returned as a failed StepResult instead of being raised.
        """
        try:
            self.ec2_client.authorize_security_group_ingress(
                GroupId=group_id,
                IpPermissions=[rule.to_ip_permission() for rule in rules]
            )
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', 'Unknown')
            self.logger.info("Security rule not created for %s (%s): %s", group_id, code, e)
            return StepResult.failed(f"{code}: {e}")

        self.logger.info("Security rule created for %s", group_id)
        return StepResult.ok()

    def ensure_key_pair(self, key_name=None):
        """
        Return the key pair named `key_name`, creating it if absent.

        EC2 hands out the private key material only once, in the create response,
        so a new pair's material is written to the key file right away. Existing
        pairs come back without material and nothing is written.
        """
        key_name = key_name or self.config.key_pair_name
        response = self.ec2_client.describe_key_pairs(
            Filters=[{'Name': 'key-name', 'Values': [key_name]}]
        )

        if response['KeyPairs']:
            key_pair = response['KeyPairs'][0]
            self.logger.info("Existing key-pair found %s (%s)", key_pair['KeyName'], key_pair.get('KeyPairId'))
            return KeyPairRef(name=key_pair['KeyName'])

        key_file_path = self.config.resolved_key_file_path()
        validate_key_file_path(key_file_path)

        key_pair = self.ec2_client.create_key_pair(KeyName=key_name)
        self.logger.info("Created a new key-pair %s (%s)", key_pair['KeyName'], key_pair.get('KeyPairId'))

        material = key_pair['KeyMaterial']
        persisted = persist_key_material(material, key_file_path, logger=self.logger)
        return KeyPairRef(
            name=key_pair['KeyName'],
            created=True,
            key_material=material,
            persisted=persisted
        )

    def run(self):
        """Run the whole provisioning sequence once"""
        self.config.validate()

        self.logger.info("1. Listing availability zones...")
        zones = self.list_availability_zones()

        self.logger.info("2. Listing images for %s...", self.config.image_id)
        images = self.list_images()

        self.logger.info("3. Ensuring security group '%s'...", self.config.security_group_name)
        security_group = self.ensure_security_group()
        rules = [create_ip_permission(port, self.config.ingress_cidr) for port in self.config.ingress_ports]
        ingress = self.authorize_ingress(security_group.group_id, rules)

        self.logger.info("4. Ensuring key pair '%s'...", self.config.key_pair_name)
        key_pair = self.ensure_key_pair()

        self.logger.info("=== Provisioning Complete ===")
        self.logger.info("Security Group ID: %s", security_group.group_id)
        self.logger.info("Key Pair: %s", key_pair.name)

        return {
            'availability_zones': zones,
            'images': images,
            'security_group': security_group,
            'ingress': ingress,
            'key_pair': key_pair,
        }


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if argv and argv[0] in ('-h', '--help'):
        print("Usage: python -m ec2.custom_ec2 [key_file_path]")
        print("Default key file path: ~/Documents/<key pair name>.pem")
        return

    configure_logging()
    config = ProvisioningConfig(key_file_path=argv[0] if argv else None)
    EC2Provisioner(config).run()


if __name__ == "__main__":
    main()
