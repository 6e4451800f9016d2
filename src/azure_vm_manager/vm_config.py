# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Resource configuration builders for a virtual machine deployment.

The builders translate user facing options into the shapes expected by the deployment
templates: the login credentials, the data disks and the OS image.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

from azure_vm_manager.constants import SSH_PUBLIC_KEY_TYPE
from azure_vm_manager.errors import VmConfigError
from azure_vm_manager.resource import ArmResource

logger = logging.getLogger(__name__)

DISK_TYPES = ("StandardSSD_LRS", "Premium_LRS", "Standard_LRS", "UltraSSD_LRS")
DISK_CREATE_OPTIONS = ("empty", "fromImage")


@dataclass(frozen=True)
class UserConfig:
    """Login configuration of the admin user of a virtual machine.

    Attributes:
        user: The admin user name.
        key: The SSH public key.
        password: The admin password.
    """

    user: str
    key: str | None = None
    password: str | None = field(default=None, repr=False)

    @property
    def auth_type(self) -> str:
        """The authentication type, key or password."""
        return "key" if self.key is not None else "password"


def user_config(
    username: str, sshkey: str | ArmResource | None = None, password: str | None = None
) -> UserConfig:
    """Build the login configuration for the admin user.

    Args:
        username: The name of the admin user account.
        sshkey: The SSH public key. Either the key itself, the name of a public key file, or
            an ArmResource pointing to a Microsoft.Compute/sshPublicKeys resource.
        password: The admin password. Supply either sshkey or password, but not both.

    Raises:
        VmConfigError: If not exactly one of sshkey and password is given, or the supplied
            public key resource holds no key.

    Returns:
        The user configuration.
    """
    key_resource = (
        isinstance(sshkey, ArmResource) and sshkey.type.lower() == SSH_PUBLIC_KEY_TYPE.lower()
    )
    has_key = isinstance(sshkey, str) or key_resource
    has_password = isinstance(password, str)

    if not has_password and not has_key:
        raise VmConfigError("Must supply either a login password or SSH key")
    if has_password and has_key:
        raise VmConfigError("Supply either a login password or SSH key, but not both")

    key: str | None = None
    if key_resource:
        key = (sshkey.properties.get("publicKey") or "").replace("\r\n", "")  # type: ignore
        if not key:
            raise VmConfigError(
                "Supplied public key resource is uninitialized, run generateKeyPair first "
                "and save the returned keys"
            )
    elif isinstance(sshkey, str):
        key = _read_key(sshkey)

    return UserConfig(user=username, key=key, password=password)


def _read_key(sshkey: str) -> str:
    """Return the key, reading it from file if the key names an existing file.

    Args:
        sshkey: The key itself or the public key file name.

    Returns:
        The public key.
    """
    try:
        key_path = Path(sshkey).expanduser()
        is_file = key_path.is_file()
    except OSError:
        # Key material is not always a valid path name.
        is_file = False
    if is_file:
        logger.debug("Reading SSH public key from %s", key_path)
        return key_path.read_text(encoding="utf-8").strip()
    return sshkey


def _without_none(values: dict[str, Any]) -> dict[str, Any]:
    """Drop the None values of a mapping."""
    return {key: value for key, value in values.items() if value is not None}


@dataclass(frozen=True)
class DiskVmSpec:
    """Data disk as attached to the virtual machine.

    Attributes:
        create_option: attach for a separately created blank disk, fromImage otherwise.
        caching: The host caching mode.
        write_accelerator_enabled: Whether write acceleration is enabled.
        storage_account_type: The disk SKU for disks created with the VM.
        disk_size_gb: The disk size, set by the host for attached disks.
        id: The managed disk ID, filled in at deployment time.
        name: The disk name.
    """

    create_option: str
    caching: str
    write_accelerator_enabled: bool
    storage_account_type: str | None
    name: str
    disk_size_gb: int | None = None
    id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Render the disk settings in the Resource Manager shape.

        Returns:
            The data disk entry of storageProfile.dataDisks.
        """
        return _without_none(
            {
                "createOption": self.create_option,
                "caching": self.caching,
                "writeAcceleratorEnabled": self.write_accelerator_enabled,
                "storageAccountType": self.storage_account_type,
                "diskSizeGB": self.disk_size_gb,
                "id": self.id,
                "name": self.name,
            }
        )


@dataclass(frozen=True)
class DiskResourceSpec:
    """Data disk as a standalone Microsoft.Compute/disks resource.

    Attributes:
        disk_size_gb: The disk size in GB.
        sku: The disk SKU.
        create_option: The creation method of the disk.
        name: The disk name.
    """

    disk_size_gb: int
    sku: str
    create_option: str
    name: str

    def as_dict(self) -> dict[str, Any]:
        """Render the disk settings in the Resource Manager shape.

        Returns:
            The disk resource fields.
        """
        return {
            "diskSizeGB": self.disk_size_gb,
            "sku": self.sku,
            "creationData": {"createOption": self.create_option},
            "name": self.name,
        }


@dataclass(frozen=True)
class DataDiskConfig:
    """Configuration of a data disk.

    Attributes:
        res_spec: The standalone resource shape, None for a disk created from an image.
        vm_spec: The VM attach shape.
    """

    res_spec: DiskResourceSpec | None
    vm_spec: DiskVmSpec

    @property
    def name(self) -> str:
        """The disk name."""
        return self.vm_spec.name


def datadisk_config(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    size: int | None,
    name: str = "datadisk",
    create: str = "empty",
    type: str = DISK_TYPES[0],  # pylint: disable=redefined-builtin
    write_accelerator: bool = False,
) -> DataDiskConfig:
    """Build the configuration of a data disk.

    Duplicate disk names are disambiguated when the disks are added to a template.

    Args:
        size: The disk size in GB, None for a disk that is created from an image.
        name: The disk name.
        create: The creation method, empty for a blank disk or fromImage to use an image.
        type: The disk SKU: StandardSSD_LRS, Premium_LRS, Standard_LRS or UltraSSD_LRS.
        write_accelerator: Whether the disk has write acceleration enabled.

    Raises:
        VmConfigError: If the disk type or creation method is not supported.

    Returns:
        The data disk configuration.
    """
    if type not in DISK_TYPES:
        raise VmConfigError(f"Invalid disk type {type}, must be one of {', '.join(DISK_TYPES)}")
    if create not in DISK_CREATE_OPTIONS:
        raise VmConfigError(
            f"Invalid disk creation method {create}, must be one of "
            f"{', '.join(DISK_CREATE_OPTIONS)}"
        )

    blank = create == "empty"
    vm_spec = DiskVmSpec(
        create_option="attach" if blank else "fromImage",
        caching="ReadOnly" if type == "Premium_LRS" else "None",
        write_accelerator_enabled=write_accelerator,
        storage_account_type=None if blank else type,
        name=name,
    )
    res_spec = (
        DiskResourceSpec(disk_size_gb=size, sku=type, create_option=create, name=name)
        if size is not None
        else None
    )
    return DataDiskConfig(res_spec=res_spec, vm_spec=vm_spec)


@dataclass(frozen=True)
class MarketplaceImage:
    """A vendor published image.

    Attributes:
        publisher: The image publisher.
        offer: The image offer.
        sku: The image SKU.
        version: The image version.
    """

    publisher: str
    offer: str
    sku: str
    version: str = "latest"

    def image_reference(self) -> dict[str, str]:
        """Render the image as a Resource Manager imageReference.

        Returns:
            The imageReference object.
        """
        return {
            "publisher": self.publisher,
            "offer": self.offer,
            "sku": self.sku,
            "version": self.version,
        }


@dataclass(frozen=True)
class CustomImage:
    """A custom image or disk resource.

    Attributes:
        id: The resource ID of the image.
    """

    id: str

    def image_reference(self) -> dict[str, str]:
        """Render the image as a Resource Manager imageReference.

        Returns:
            The imageReference object.
        """
        return {"id": self.id}


ImageConfig = Union[MarketplaceImage, CustomImage]


def image_config(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    publisher: str | None = None,
    offer: str | None = None,
    sku: str | None = None,
    version: str = "latest",
    id: str | None = None,  # pylint: disable=redefined-builtin
) -> ImageConfig:
    """Build the image configuration.

    Args:
        publisher: The marketplace image publisher.
        offer: The marketplace image offer.
        sku: The marketplace image SKU.
        version: The marketplace image version.
        id: The resource ID of a custom image or disk.

    Raises:
        VmConfigError: Unless exactly one of the marketplace triple and the ID is given.

    Returns:
        The marketplace or custom image configuration.
    """
    marketplace = publisher is not None and offer is not None and sku is not None
    custom = id is not None

    if marketplace and custom:
        raise VmConfigError(
            "Supply either a marketplace image or a custom image ID, but not both"
        )
    if marketplace:
        return MarketplaceImage(
            publisher=publisher, offer=offer, sku=sku, version=version  # type: ignore
        )
    if custom:
        if publisher is not None or offer is not None or sku is not None:
            logger.warning(
                "Ignoring incomplete marketplace image details for custom image %s", id
            )
        return CustomImage(id=id)  # type: ignore
    raise VmConfigError("Invalid image configuration")
