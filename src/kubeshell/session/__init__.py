"""Session state engine: selection, aliases, port forwards and interrupts."""

from kubeshell.session.aliases import AliasExpander, ExpandedAlias
from kubeshell.session.interrupt import (
    InterruptSignal,
    get_interrupt_signal,
    install_signal_handler,
)
from kubeshell.session.kinds import ResourceKind
from kubeshell.session.port_forward import (
    ForwardOutput,
    PortForwardError,
    PortForwardSupervisor,
    PortForwardTask,
    start_port_forward,
)
from kubeshell.session.selection import (
    EMPTY_SELECTION,
    ResourceList,
    ResourceSelector,
    SelectedObject,
)
from kubeshell.session.state import SessionState

__all__ = [
    "EMPTY_SELECTION",
    "AliasExpander",
    "ExpandedAlias",
    "ForwardOutput",
    "InterruptSignal",
    "PortForwardError",
    "PortForwardSupervisor",
    "PortForwardTask",
    "ResourceKind",
    "ResourceList",
    "ResourceSelector",
    "SelectedObject",
    "SessionState",
    "get_interrupt_signal",
    "install_signal_handler",
    "start_port_forward",
]
