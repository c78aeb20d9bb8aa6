"""Command-line interface for vm-power-reconciler.

Usage:
    vm-power plan --target on --status paused      # What would one pass do?
    vm-power plan --target on --status stopped --no-network
    vm-power table                                  # Full transition table
    vm-power network-config interfaces.json         # Render cloud-init network-config
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click
from pydantic import TypeAdapter, ValidationError

from vm_power import __version__, constants
from vm_power._logging import configure_logging
from vm_power.exceptions import NetworkConfigError
from vm_power.models import MachineState, PowerTarget, Task, VirtualMachine, VmStatus
from vm_power.network_config import NetworkConfig, NetworkConfigData
from vm_power.power import ReconcileResult, reconcile_power_state, select_power_action
from vm_power.settings import Settings

EXIT_CLI_ERROR = 2

DRY_RUN_UPID = "UPID:dry-run"

_STATUS_CHOICE = click.Choice([s.value for s in VmStatus], case_sensitive=False)
_TARGET_CHOICE = click.Choice([t.value for t in PowerTarget], case_sensitive=False)


class DryRunClient:
    """HypervisorClient that records the requested action instead of performing it."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []

    async def _record(self, name: str, vm: VirtualMachine) -> Task:
        self.calls.append((name, vm.vmid))
        return Task(upid=DRY_RUN_UPID)

    async def resume_vm(self, vm: VirtualMachine) -> Task | None:
        return await self._record("resume", vm)

    async def start_vm(self, vm: VirtualMachine) -> Task | None:
        return await self._record("start", vm)

    async def shutdown_vm(self, vm: VirtualMachine) -> Task | None:
        return await self._record("shutdown", vm)


def format_error(title: str, message: str, suggestions: list[str] | None = None) -> str:
    """Format an error message following What → Why → Fix pattern."""
    lines = [
        click.style(f"Error: {title}", fg="red", bold=True),
        "",
        f"  {message}",
    ]

    if suggestions:
        lines.extend(["", "  Suggestions:"])
        lines.extend(f"    • {suggestion}" for suggestion in suggestions)

    return "\n".join(lines)


def format_plan(state: MachineState, result: ReconcileResult) -> dict[str, Any]:
    condition = result.condition
    if result.action is not None:
        decision = result.action.value
    elif result.requeue:
        decision = "wait"
    else:
        decision = "none"
    return {
        "vmid": state.vm.vmid,
        "status": state.vm.status.value,
        "target": state.target.value,
        "action": decision,
        "requeue": result.requeue,
        "task_ref": result.task_ref,
        "condition": None
        if condition is None
        else {"kind": condition.kind, "status": condition.status.value, "reason": condition.reason},
    }


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("-q", "--quiet", is_flag=True, help="Only log errors")
@click.version_option(__version__, "-V", "--version", prog_name="vm-power")
def main(verbose: bool, quiet: bool) -> None:
    """Inspect VM power state reconciliation decisions."""
    if verbose or quiet:
        configure_logging(level="DEBUG" if verbose else None, quiet=quiet)


@main.command()
@click.option("--target", "-t", type=_TARGET_CHOICE, required=True, help="Declared power state")
@click.option("--status", "-s", type=_STATUS_CHOICE, required=True, help="Observed VM power status")
@click.option("--vmid", default=100, show_default=True, type=click.IntRange(min=1), help="VM identifier")
@click.option("--no-network", is_flag=True, help="Machine has no network address yet")
@click.option("--task-ref", default=None, help="Outstanding task reference from a previous pass")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def plan(
    target: str,
    status: str,
    vmid: int,
    no_network: bool,
    task_ref: str | None,
    json_output: bool,
) -> None:
    """Show what one reconciliation pass would do, without touching a hypervisor."""
    state = MachineState(
        target=PowerTarget(target.lower()),
        vm=VirtualMachine(vmid=vmid, status=VmStatus(status.lower())),
        task_ref=task_ref,
        ip_addresses={} if no_network else {constants.DEFAULT_NETWORK_DEVICE: "192.0.2.10/24"},
    )
    result = asyncio.run(reconcile_power_state(DryRunClient(), state, settings=Settings()))
    summary = format_plan(state, result)

    if json_output:
        click.echo(json.dumps(summary, indent=2))
        return

    click.echo(f"VM {summary['vmid']}: {summary['status']} -> {summary['target']}")
    click.echo(f"  action:  {summary['action']}")
    click.echo(f"  requeue: {str(summary['requeue']).lower()}")
    if summary["condition"] is not None:
        cond = summary["condition"]
        click.echo(f"  condition: {cond['kind']}={cond['status']} ({cond['reason']})")


@main.command()
def table() -> None:
    """Print the power transition table."""
    click.echo(f"{'status':<12}{'on':<10}{'off':<10}")
    for status in VmStatus:
        on = select_power_action(PowerTarget.ON, status)
        off = select_power_action(PowerTarget.OFF, status)
        click.echo(f"{status.value:<12}{on.value if on else 'none':<10}{off.value if off else 'none':<10}")


@main.command("network-config")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, allow_dash=True))
def network_config(source: str) -> None:
    """Render cloud-init network-config from a JSON list of interfaces.

    SOURCE is a file path, or "-" for stdin. Each entry takes mac_address,
    ip_address, ipv6_address, gateway, gateway6, dns_servers, dhcp4, dhcp6.
    """
    raw = sys.stdin.read() if source == "-" else Path(source).read_text()

    try:
        configs = TypeAdapter(list[NetworkConfigData]).validate_json(raw)
    except ValidationError as e:
        click.echo(format_error("Invalid interface data", str(e)), err=True)
        sys.exit(EXIT_CLI_ERROR)

    try:
        rendered = NetworkConfig(configs).render()
    except NetworkConfigError as e:
        click.echo(
            format_error(
                "Invalid network config",
                e.message,
                ["Static addresses need CIDR notation (10.0.0.5/24) and a gateway"],
            ),
            err=True,
        )
        sys.exit(EXIT_CLI_ERROR)

    click.echo(rendered.decode(), nl=False)


if __name__ == "__main__":
    main()
