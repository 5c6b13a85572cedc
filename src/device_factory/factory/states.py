"""Device lifecycle states and the transitions allowed between them."""

from enum import Enum


class DeviceState(str, Enum):
    PROVISIONED = "PROVISIONED"
    PROVISIONED_ALIVE = "PROVISIONED_ALIVE"
    READY_TO_ACTIVATE = "READY_TO_ACTIVATE"
    ACTIVE = "ACTIVE"
    STOLEN = "STOLEN"
    FAULTY = "FAULTY"
    DEACTIVATED = "DEACTIVATED"


ALLOWED_TRANSITIONS: dict[DeviceState, frozenset[DeviceState]] = {
    DeviceState.PROVISIONED: frozenset({DeviceState.STOLEN, DeviceState.FAULTY}),
    DeviceState.ACTIVE: frozenset({DeviceState.STOLEN, DeviceState.FAULTY}),
    DeviceState.STOLEN: frozenset({DeviceState.ACTIVE, DeviceState.PROVISIONED}),
    DeviceState.FAULTY: frozenset(
        {DeviceState.STOLEN, DeviceState.ACTIVE, DeviceState.PROVISIONED}
    ),
}

# States reported in aggregate counts.
COUNTED_STATES = (
    DeviceState.PROVISIONED,
    DeviceState.ACTIVE,
    DeviceState.FAULTY,
    DeviceState.STOLEN,
)

# History action written for a field update.
ACTION_UPDATED = "UPDATED"


def parse_state(value: str | None) -> DeviceState | None:
    """Return the matching state (case-insensitive) or None."""
    if not value:
        return None
    try:
        return DeviceState(value.strip().upper())
    except ValueError:
        return None


def can_transition(current: str, target: DeviceState) -> bool:
    current_state = parse_state(current)
    if current_state is None:
        return False
    return target in ALLOWED_TRANSITIONS.get(current_state, frozenset())
