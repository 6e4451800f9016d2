# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Named marketplace image presets."""

from dataclasses import dataclass

from azure_vm_manager.errors import VmConfigError
from azure_vm_manager.vm_config import ImageConfig, image_config


@dataclass(frozen=True)
class ImagePreset:
    """A marketplace image together with the template family able to deploy it.

    Attributes:
        os: The template OS family, Ubuntu for Linux images or Windows.
        image: The image configuration.
    """

    os: str
    image: ImageConfig


IMAGE_PRESETS: dict[str, ImagePreset] = {
    "ubuntu_18.04": ImagePreset(
        "Ubuntu", image_config("Canonical", "UbuntuServer", "18.04-LTS")
    ),
    "ubuntu_20.04": ImagePreset(
        "Ubuntu", image_config("Canonical", "0001-com-ubuntu-server-focal", "20_04-lts")
    ),
    "ubuntu_20.04_gen2": ImagePreset(
        "Ubuntu", image_config("Canonical", "0001-com-ubuntu-server-focal", "20_04-lts-gen2")
    ),
    "debian_8_backports": ImagePreset("Ubuntu", image_config("Credativ", "Debian", "8-backports")),
    "debian_9_backports": ImagePreset("Ubuntu", image_config("Credativ", "Debian", "9-backports")),
    "debian_10_backports": ImagePreset(
        "Ubuntu", image_config("Debian", "Debian-10", "10-backports")
    ),
    "debian_10_backports_gen2": ImagePreset(
        "Ubuntu", image_config("Debian", "Debian-10", "10-backports-gen2")
    ),
    "centos_7.5": ImagePreset("Ubuntu", image_config("OpenLogic", "CentOS", "7.5")),
    "windows_2016": ImagePreset(
        "Windows", image_config("MicrosoftWindowsServer", "WindowsServer", "2016-Datacenter")
    ),
    "windows_2019": ImagePreset(
        "Windows", image_config("MicrosoftWindowsServer", "WindowsServer", "2019-Datacenter")
    ),
}


def get_image_preset(name: str) -> ImagePreset:
    """Get an image preset by name.

    Args:
        name: The preset name, e.g. ubuntu_20.04.

    Raises:
        VmConfigError: If there is no preset with that name.

    Returns:
        The image preset.
    """
    try:
        return IMAGE_PRESETS[name]
    except KeyError as exc:
        raise VmConfigError(
            f"Unknown image preset {name}, must be one of {', '.join(IMAGE_PRESETS)}"
        ) from exc
