# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""The CLI entrypoint for azure-vm-manager application."""

import functools
import logging
import sys
from dataclasses import dataclass
from typing import Any, Callable, TextIO

import click

from azure_vm_manager.arm_client import ArmClient
from azure_vm_manager.configuration import ApplicationConfiguration
from azure_vm_manager.errors import AzureVmError
from azure_vm_manager.resource_group import Subscription
from azure_vm_manager.vm_config import user_config
from azure_vm_manager.vm_resource import VmResource
from azure_vm_manager.vm_template import VmTemplate, is_vm_template

logger = logging.getLogger(__name__)


@dataclass
class CliContext:
    """State shared by the CLI commands.

    Attributes:
        config: The application configuration.
        subscription: The subscription to manage.
    """

    config: ApplicationConfiguration
    subscription: Subscription

    def get_vm(self, name: str) -> VmTemplate | VmResource:
        """Get a virtual machine, from the configured resource group if any.

        Args:
            name: The VM name.

        Returns:
            The VM deployment or the VM.
        """
        if self.config.resource_group:
            return self.subscription.get_resource_group(self.config.resource_group).get_vm(name)
        return self.subscription.get_vm(name)


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Report library errors as CLI errors.

    Args:
        func: The command callback.

    Returns:
        The wrapped callback.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        """Run the command.

        Args:
            args: The positional arguments of the command.
            kwargs: The keyword arguments of the command.

        Raises:
            ClickException: If the command failed.

        Returns:
            The command result.
        """
        try:
            return func(*args, **kwargs)
        except AzureVmError as exc:
            logger.debug("Command failed", exc_info=True)
            raise click.ClickException(str(exc)) from exc

    return wrapper


def _describe(vm: VmTemplate | VmResource) -> str:
    """Describe a VM or VM deployment.

    Args:
        vm: The VM or VM deployment.

    Returns:
        The description.
    """
    if is_vm_template(vm):
        return str(vm)
    status = vm.sync_vm_status()  # type: ignore[union-attr]
    return (
        f"<Azure virtual machine resource {vm.name}>\n"
        f"  Status: {status.provisioning}, {status.power}"
    )


@click.group()
@click.option(
    "--config-file",
    type=click.File(mode="r", encoding="utf-8"),
    required=True,
    help="The file path containing the configurations.",
)
@click.option(
    "--log-level",
    type=click.Choice(
        [
            "CRITICAL",
            "FATAL",
            "ERROR",
            "WARNING",
            "INFO",
            "DEBUG",
        ]
    ),
    default="INFO",
    help="The log level for the application.",
)
@click.version_option(package_name="azure-vm-manager")
@click.pass_context
def cli(ctx: click.Context, config_file: TextIO, log_level: str) -> None:
    """Manage Azure virtual machines and virtual machine clusters.

    Args:
        ctx: The click context.
        config_file: The configuration file.
        log_level: The log level.
    """
    logging.basicConfig(
        level=log_level,
        stream=sys.stderr,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    config = ApplicationConfiguration.from_yaml_file(config_file)
    client = ArmClient(config.get_token_credential(), config.arm)
    ctx.obj = CliContext(config=config, subscription=Subscription(client, config.subscription_id))


@cli.command()
@click.argument("name")
@click.option("--cluster-size", type=click.IntRange(min=1), default=1, help="Number of VMs.")
@click.option("--size", type=str, default=None, help="The VM size.")
@click.option(
    "--os", "os_family", type=click.Choice(["Ubuntu", "Windows"]), default=None, help="OS family."
)
@click.option("--image", type=str, default=None, help="The name of an image preset.")
@click.option("--no-wait", is_flag=True, default=False, help="Return once deployment started.")
@click.pass_obj
@handle_errors
def create(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    obj: CliContext,
    name: str,
    cluster_size: int,
    size: str | None,
    os_family: str | None,
    image: str | None,
    no_wait: bool,
) -> None:
    """Deploy a VM, or a cluster of VMs, named NAME.

    The OS family given with --os replaces the image preset of the configuration.
    """
    if os_family and image:
        raise click.UsageError("--os and --image are mutually exclusive")
    defaults = obj.config.vm
    login_user = user_config(
        defaults.username, sshkey=defaults.ssh_key, password=defaults.password
    )
    kwargs: dict[str, Any] = {
        "size": size or defaults.size,
        "os": os_family or defaults.os,
        "image": image or (None if os_family else defaults.image),
        "clust_size": cluster_size,
        "wait": not no_wait,
    }
    if obj.config.resource_group:
        group = obj.subscription.get_resource_group(obj.config.resource_group)
        vm = group.create_vm(name, login_user, **kwargs)
    else:
        vm = obj.subscription.create_vm(name, login_user, location=obj.config.location, **kwargs)
    click.echo(str(vm))


@cli.command()
@click.argument("name")
@click.pass_obj
@handle_errors
def status(obj: CliContext, name: str) -> None:
    """Show the status of the VM or VM cluster NAME."""
    vm = obj.get_vm(name)
    if is_vm_template(vm):
        vm.sync_vm_status()  # type: ignore[union-attr]
    click.echo(_describe(vm))


@cli.command()
@click.argument("name")
@click.pass_obj
@handle_errors
def start(obj: CliContext, name: str) -> None:
    """Start the VM or VM cluster NAME."""
    vm = obj.get_vm(name)
    vm.start(wait=True)
    click.echo(_describe(vm))


@cli.command()
@click.argument("name")
@click.option(
    "--no-deallocate",
    is_flag=True,
    default=False,
    help="Power off, keeping the compute resources.",
)
@click.pass_obj
@handle_errors
def stop(obj: CliContext, name: str, no_deallocate: bool) -> None:
    """Stop the VM or VM cluster NAME."""
    vm = obj.get_vm(name)
    vm.stop(deallocate=not no_deallocate, wait=True)
    click.echo(_describe(vm))


@cli.command()
@click.argument("name")
@click.pass_obj
@handle_errors
def restart(obj: CliContext, name: str) -> None:
    """Restart the VM or VM cluster NAME."""
    vm = obj.get_vm(name)
    vm.restart(wait=True)
    click.echo(_describe(vm))


@cli.command()
@click.argument("name")
@click.argument("size")
@click.option("--deallocate", is_flag=True, default=False, help="Deallocate before resizing.")
@click.pass_obj
@handle_errors
def resize(obj: CliContext, name: str, size: str, deallocate: bool) -> None:
    """Resize the VM or VM cluster NAME to SIZE."""
    vm = obj.get_vm(name)
    vm.resize(size, deallocate=deallocate, wait=deallocate)
    click.echo(f"Resized {name} to {size}")


@cli.command("run-script")
@click.argument("name")
@click.argument("script_file", type=click.File(mode="r", encoding="utf-8"))
@click.pass_obj
@handle_errors
def run_script(obj: CliContext, name: str, script_file: TextIO) -> None:
    """Run the script in SCRIPT_FILE on the VM or VM cluster NAME."""
    vm = obj.get_vm(name)
    vm.run_script(script_file.read())
    click.echo(f"Script submitted to {name}")


@cli.command()
@click.argument("name")
@click.option("--yes", is_flag=True, default=False, help="Do not ask for confirmation.")
@click.option(
    "--keep-resources", is_flag=True, default=False, help="Only delete the deployment record."
)
@click.pass_obj
@handle_errors
def delete(obj: CliContext, name: str, yes: bool, keep_resources: bool) -> None:
    """Delete the VM or VM cluster NAME."""
    vm = obj.get_vm(name)
    if is_vm_template(vm):
        vm.delete(confirm=not yes, free_resources=not keep_resources)  # type: ignore[call-arg]
    else:
        vm.delete(confirm=not yes)
    click.echo(f"Deleted {name}")


@cli.command("list")
@click.pass_obj
@handle_errors
def list_vms(obj: CliContext) -> None:
    """List the VMs."""
    if obj.config.resource_group:
        vms = obj.subscription.get_resource_group(obj.config.resource_group).list_vms()
    else:
        vms = obj.subscription.list_vms()
    for vm in vms:
        click.echo(f"{vm.name}\t{vm.resource_group}\t{vm.location}")


def main() -> None:  # pragma: no cover
    """Run the CLI."""
    cli()  # pylint: disable=no-value-for-parameter
