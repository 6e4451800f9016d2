# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Selection and parameterization of the packaged deployment templates."""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Sequence

from azure_vm_manager.constants import VM_TYPE
from azure_vm_manager.errors import UnsupportedTemplateError
from azure_vm_manager.vm_config import DataDiskConfig

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

_OS_TEMPLATES = {"Ubuntu": "ubuntu_dsvm", "Windows": "win2016_dsvm"}

# User facing argument names to the parameter names used by the packaged templates.
PARAM_MAPPINGS: dict[str, str] = {
    "name": "vmName",
    "login_user": "adminUsername",
    "login_password": "adminPassword",
    "key": "sshKeyData",
    "size": "vmSize",
    "clust_size": "numberOfInstances",
    "ext_file_uris": "fileUris",
    "inst_command": "commandToExecute",
    "location": "location",
    "dns_label": "dnsLabelPrefix",
    "image": "imageReference",
}


def get_dsvm_template(
    os: str,
    userauth_type: str,
    clust_size: int,
    ext_file_uris: Sequence[str] | None = None,
    inst_command: str | None = None,
) -> Path:
    """Select the packaged template for a combination of deployment options.

    Args:
        os: The OS family, Ubuntu or Windows.
        userauth_type: The login authentication type, key or password.
        clust_size: The number of VMs to deploy.
        ext_file_uris: The files to download with the custom script extension.
        inst_command: The command run by the custom script extension.

    Raises:
        UnsupportedTemplateError: If the OS is unknown or no template serves the combination.

    Returns:
        The path of the template file.
    """
    try:
        template = _OS_TEMPLATES[os]
    except KeyError as exc:
        raise UnsupportedTemplateError(f"Unknown OS: {os}") from exc

    if clust_size > 1:
        template += "_cl"
    if userauth_type == "key":
        template += "_key"
    if ext_file_uris or inst_command:
        template += "_ext"

    template_path = TEMPLATES_DIR / f"{template}.json"
    if not template_path.is_file():
        raise UnsupportedTemplateError("Unsupported combination of parameters")
    return template_path


def list_dsvm_templates() -> list[str]:
    """List the names of the packaged templates.

    Returns:
        The sorted template names, without the file extension.
    """
    return sorted(path.stem for path in TEMPLATES_DIR.glob("*.json"))


def load_template(path: Path | str) -> dict[str, Any]:
    """Read a deployment template.

    Args:
        path: The path of the template file.

    Returns:
        The template.
    """
    with open(path, encoding="utf-8") as template_file:
        return json.load(template_file)


def make_dsvm_param_list(template: dict[str, Any], **params: Any) -> dict[str, dict[str, Any]]:
    """Match user facing arguments to the parameters a template expects.

    Arguments that the template does not declare, and arguments set to None, are dropped.

    Args:
        template: The deployment template.
        params: The arguments, named as in PARAM_MAPPINGS.

    Returns:
        The deployment parameters, in the {"name": {"value": value}} shape.
    """
    declared = template.get("parameters", {})
    param_list: dict[str, dict[str, Any]] = {}
    for arg_name, value in params.items():
        if value is None:
            continue
        template_name = PARAM_MAPPINGS.get(arg_name)
        if template_name is None or template_name not in declared:
            logger.debug("Template does not take argument %s, dropping it", arg_name)
            continue
        param_list[template_name] = {"value": value}
    return param_list


def disambiguate_disk_names(names: Sequence[str]) -> list[str]:
    """Make disk names unique.

    The first occurrence of a name is kept, later duplicates get a numeric suffix.

    Args:
        names: The disk names.

    Returns:
        The unique disk names, in the same order.
    """
    taken = set(names)
    seen: set[str] = set()
    unique = []
    for name in names:
        if name not in seen:
            seen.add(name)
            unique.append(name)
            continue
        suffix = 2
        while f"{name}_{suffix}" in taken:
            suffix += 1
        new_name = f"{name}_{suffix}"
        logger.info("Renaming duplicate disk %s to %s", name, new_name)
        taken.add(new_name)
        seen.add(new_name)
        unique.append(new_name)
    return unique


def add_datadisks(
    template: dict[str, Any], datadisks: Sequence[DataDiskConfig]
) -> dict[str, Any]:
    """Wire data disks into a deployment template.

    Disks with a resource spec are created as separate disk resources and attached to the VM,
    one set per VM for cluster templates. Disks without one are created from the image.

    Args:
        template: The deployment template, left unchanged.
        datadisks: The data disks.

    Raises:
        UnsupportedTemplateError: If the template has no virtual machine resource.

    Returns:
        A copy of the template with the data disks added.
    """
    template = copy.deepcopy(template)
    if not datadisks:
        return template

    vm = next(
        (res for res in template.get("resources", []) if res.get("type") == VM_TYPE), None
    )
    if vm is None:
        raise UnsupportedTemplateError("Template does not contain a virtual machine")
    vm_copy = vm.get("copy")
    vm_name = (
        "concat(parameters('vmName'), copyIndex())" if vm_copy else "parameters('vmName')"
    )

    names = disambiguate_disk_names([disk.name for disk in datadisks])
    vm_disks = vm["properties"]["storageProfile"].setdefault("dataDisks", [])
    for lun, (disk, disk_name) in enumerate(zip(datadisks, names)):
        resource_name = f"concat({vm_name}, '_{disk_name}')"
        entry: dict[str, Any] = {
            "lun": lun,
            "name": f"[{resource_name}]",
            "caching": disk.vm_spec.caching,
            "writeAcceleratorEnabled": disk.vm_spec.write_accelerator_enabled,
        }
        if disk.res_spec is not None:
            disk_id = f"resourceId('Microsoft.Compute/disks', {resource_name})"
            entry["createOption"] = "Attach"
            entry["managedDisk"] = {"id": f"[{disk_id}]"}
            spec = disk.res_spec.as_dict()
            disk_resource: dict[str, Any] = {
                "type": "Microsoft.Compute/disks",
                "apiVersion": "2021-04-01",
                "name": f"[{resource_name}]",
                "location": "[parameters('location')]",
                "sku": {"name": spec["sku"]},
                "properties": {
                    "diskSizeGB": spec["diskSizeGB"],
                    "creationData": spec["creationData"],
                },
            }
            if vm_copy:
                disk_resource["copy"] = {
                    "name": f"disk{lun}Loop",
                    "count": vm_copy["count"],
                }
            template["resources"].append(disk_resource)
            vm.setdefault("dependsOn", []).append(f"[{disk_id}]")
        else:
            entry["createOption"] = "FromImage"
            entry["managedDisk"] = {"storageAccountType": disk.vm_spec.storage_account_type}
        vm_disks.append(entry)
    return template
