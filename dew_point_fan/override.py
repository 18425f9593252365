import logging
import threading
from typing import Union

from dew_point_fan.models import FanState, RemoteOverride

logger = logging.getLogger(__name__)


class OverrideSource:
    """
    Remote override value shared between the HTTP worker (writer) and the
    control loop (reader, once per cycle).
    """

    def __init__(self, value: RemoteOverride = RemoteOverride.NONE):
        self._lock = threading.Lock()
        self._value = value

    def set(self, value: Union[RemoteOverride, int]) -> RemoteOverride:
        """Store a new override. Raises ValueError for values other than 0, 1 or 2."""
        value = RemoteOverride(value)
        with self._lock:
            self._value = value
        return value

    def get(self) -> RemoteOverride:
        with self._lock:
            return self._value


class OverrideArbiter:
    """
    Merges the remote override with the computed decision and tracks the
    manual switch feedback for reporting.
    """

    def __init__(self, source: OverrideSource):
        self.source = source

    def arbitrate(self, state: FanState, desired: bool) -> bool:
        """Return the relay command: the remote override if set, otherwise `desired`."""
        remote = self.source.get()
        state.desired = desired
        state.remote_override = remote
        if remote is RemoteOverride.FORCE_ON:
            state.command = True
        elif remote is RemoteOverride.FORCE_OFF:
            state.command = False
        else:
            state.command = desired
        return state.command

    def observe(self, state: FanState, fan_running: bool) -> bool:
        """
        Record the fan feedback of this cycle and log once if anything changed
        since the previous cycle. The feedback never alters the command.
        """
        state.fan_running = fan_running
        changed = (
            state.command != state.last_command
            or state.fan_running != state.last_fan_running
            or state.remote_override != state.last_remote_override
        )
        if changed:
            logger.info(
                f"Venting change: new state is {state.command}, fan status {state.fan_running}, "
                f"remote override {int(state.remote_override)}"
            )
        state.last_command = state.command
        state.last_fan_running = state.fan_running
        state.last_remote_override = state.remote_override
        return changed
