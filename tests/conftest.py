"""Shared pytest fixtures for vm-power-reconciler tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from vm_power.models import MachineState, PowerTarget, Task, VirtualMachine, VmStatus
from vm_power.settings import Settings

# ============================================================================
# Fake hypervisor
# ============================================================================


class FakeHypervisorClient:
    """In-memory HypervisorClient.

    Records every call as (method, vmid). Each method returns the Task given
    for it in ``tasks`` (None when absent) or raises the exception in
    ``errors``.
    """

    def __init__(
        self,
        tasks: dict[str, Task | None] | None = None,
        errors: dict[str, BaseException] | None = None,
    ) -> None:
        self.tasks = tasks or {}
        self.errors = errors or {}
        self.calls: list[tuple[str, int]] = []

    async def _call(self, method: str, vm: VirtualMachine) -> Task | None:
        self.calls.append((method, vm.vmid))
        if method in self.errors:
            raise self.errors[method]
        return self.tasks.get(method)

    async def resume_vm(self, vm: VirtualMachine) -> Task | None:
        return await self._call("resume_vm", vm)

    async def start_vm(self, vm: VirtualMachine) -> Task | None:
        return await self._call("start_vm", vm)

    async def shutdown_vm(self, vm: VirtualMachine) -> Task | None:
        return await self._call("shutdown_vm", vm)


@pytest.fixture
def fake_client() -> FakeHypervisorClient:
    return FakeHypervisorClient()


@pytest.fixture
def make_client() -> type[FakeHypervisorClient]:
    return FakeHypervisorClient


@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from VM_POWER_* env vars on the test host."""
    return Settings(guard_outstanding_task=True, network_device="net0")


@pytest.fixture
def make_state() -> Callable[..., MachineState]:
    """Build a MachineState for VM 100 with a network address by default."""

    def _make(
        status: VmStatus,
        target: PowerTarget = PowerTarget.ON,
        *,
        vmid: int = 100,
        task_ref: str | None = None,
        ip_addresses: dict[str, str] | None = None,
    ) -> MachineState:
        return MachineState(
            target=target,
            vm=VirtualMachine(vmid=vmid, status=status, name=f"vm-{vmid}", node="pve1"),
            task_ref=task_ref,
            ip_addresses={"net0": "10.0.0.5/24"} if ip_addresses is None else ip_addresses,
        )

    return _make
