"""Hypervisor client capability consumed by the reconciler.

Transport, authentication and task polling live in the concrete client. The
reconciler only needs the three power calls below. Each one initiates an
asynchronous operation on the hypervisor and returns its Task handle, or None
when the hypervisor had nothing to do. Failures are raised.

Cancellation is the caller's business: wrap the pass in ``asyncio.timeout()``
to bound the single client call.
"""

from typing import Protocol, runtime_checkable

from vm_power.models import PowerAction, Task, VirtualMachine


@runtime_checkable
class HypervisorClient(Protocol):
    async def resume_vm(self, vm: VirtualMachine) -> Task | None:
        """Resume a paused VM."""
        ...

    async def start_vm(self, vm: VirtualMachine) -> Task | None:
        """Start a stopped or hibernated VM."""
        ...

    async def shutdown_vm(self, vm: VirtualMachine) -> Task | None:
        """Request a graceful guest shutdown (ACPI), not a hard power cut."""
        ...


async def invoke_power_action(client: HypervisorClient, action: PowerAction, vm: VirtualMachine) -> Task | None:
    """Issue ``action`` against ``vm`` through the matching client method."""
    match action:
        case PowerAction.RESUME:
            return await client.resume_vm(vm)
        case PowerAction.START:
            return await client.start_vm(vm)
        case PowerAction.SHUTDOWN:
            return await client.shutdown_vm(vm)
