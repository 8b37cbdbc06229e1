# ambient_glow/services/liveness_service.py
"""
Liveness monitor - pings one host every round and signals up/down transitions

State machine (one evaluation per probe round):
    reply    -> Up    (Down -> Up fires RESUME)
    no reply -> Down  (Up/Unknown -> Down fires PAUSE)
An empty or unresolvable host disables the monitor entirely.
"""
import enum
import shutil
import socket
import logging
import threading
import subprocess
from typing import Callable, Optional, Tuple
from urllib.parse import urlparse

import requests

from ambient_glow.config import PING_INTERVAL, PING_TIMEOUT
from ambient_glow.errors import ProbeError

logger = logging.getLogger(__name__)


class LivenessState(enum.Enum):
    UNKNOWN = "unknown"
    UP = "up"
    DOWN = "down"


class LivenessAction(enum.Enum):
    PAUSE = "pause"
    RESUME = "resume"


def next_liveness_state(previous: LivenessState, got_reply: bool) -> Tuple[LivenessState, Optional[LivenessAction]]:
    """Pure transition function for one probe round"""
    if got_reply:
        if previous == LivenessState.DOWN:
            return LivenessState.UP, LivenessAction.RESUME
        return LivenessState.UP, None

    if previous in (LivenessState.UP, LivenessState.UNKNOWN):
        return LivenessState.DOWN, LivenessAction.PAUSE
    return LivenessState.DOWN, None


# ========== PROBES ==========

class IcmpProbe:
    """ICMP echo through the system ping binary (one packet per round)"""

    def __init__(self, ping_binary: str = "ping"):
        self.ping_binary = ping_binary

    def setup(self) -> None:
        path = shutil.which(self.ping_binary)
        if path is None:
            raise ProbeError(f"'{self.ping_binary}' not found in PATH")
        self.ping_binary = path

    def resolve(self, host_spec: str) -> Optional[str]:
        if not host_spec:
            return None
        try:
            infos = socket.getaddrinfo(host_spec, None, socket.AF_INET)
        except socket.gaierror as e:
            logger.warning(f"Could not resolve {host_spec}: {e}")
            return None
        return infos[0][4][0] if infos else None

    def send(self, address: str, timeout: float) -> bool:
        wait = max(1, int(round(timeout)))
        cmd = [self.ping_binary, "-c", "1", "-W", str(wait), address]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=wait + 5)
        except subprocess.TimeoutExpired:
            return False
        except OSError as e:
            raise ProbeError(f"error while pinging: {e}") from e

        # 0 = reply, 1 = no reply, anything else is a ping error
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False
        raise ProbeError(f"error while pinging: {result.stderr.strip() or result.returncode}")


class HttpProbe:
    """Reachability over HTTP(S); any response counts as a reply"""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    def setup(self) -> None:
        pass

    def resolve(self, host_spec: str) -> Optional[str]:
        hostname = urlparse(host_spec).hostname
        if not hostname:
            return None
        try:
            socket.getaddrinfo(hostname, None)
        except socket.gaierror as e:
            logger.warning(f"Could not resolve {hostname}: {e}")
            return None
        return host_spec

    def send(self, address: str, timeout: float) -> bool:
        try:
            self.session.get(address, timeout=timeout)
            return True
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError):
            return False
        except requests.exceptions.RequestException as e:
            raise ProbeError(f"error while probing {address}: {e}") from e


def create_probe(host_spec: str):
    """HTTP probe for http(s) URLs, ICMP otherwise"""
    if host_spec.startswith(("http://", "https://")):
        return HttpProbe()
    return IcmpProbe()


# ========== MONITOR ==========

class LivenessMonitor:
    """Runs probe rounds in a background thread and calls on_down/on_up on transitions"""

    def __init__(self, host_spec: str, on_down: Callable[[], None], on_up: Callable[[], None],
                 stop_event: threading.Event, probe=None,
                 interval: float = PING_INTERVAL, timeout: float = PING_TIMEOUT):
        """
        Args:
            host_spec: host name, IP or http(s) URL; empty disables the monitor
            on_down: called on Up/Unknown -> Down (PauseController.pause)
            on_up: called on Down -> Up (PauseController.resume)
            stop_event: process-wide stop token
            probe: object with setup/resolve/send (defaults from host_spec)
            interval: seconds between rounds
            timeout: reply window of a round
        """
        self.host_spec = host_spec or ""
        self.on_down = on_down
        self.on_up = on_up
        self.stop_event = stop_event
        self.probe = probe if probe is not None else create_probe(self.host_spec)
        self.interval = interval
        self.timeout = timeout

        self.state = LivenessState.UNKNOWN
        self.address: Optional[str] = None
        self.enabled = False
        self._monitor_thread: Optional[threading.Thread] = None

    def setup(self) -> bool:
        """
        Resolve the host and prepare the probe
        Returns False (monitor disabled) when there is nothing to ping
        ProbeError from the probe setup propagates
        """
        self.address = self.probe.resolve(self.host_spec)
        if not self.address:
            logger.info(f"No ping IP given ({self.host_spec}) (or resolved), disabling ping check ...")
            self.enabled = False
            return False

        self.probe.setup()
        self.enabled = True
        logger.info(f"✅ Liveness check enabled for {self.host_spec} ({self.address})")
        return True

    def start(self) -> bool:
        """Set up and launch the probe loop, returns whether monitoring is active"""
        if not self.setup():
            return False
        self._monitor_thread = threading.Thread(target=self._monitor_loop, daemon=True)
        self._monitor_thread.start()
        return True

    def join(self, timeout: Optional[float] = None):
        if self._monitor_thread:
            self._monitor_thread.join(timeout=timeout)

    def _monitor_loop(self):
        while not self.stop_event.is_set():
            try:
                self.run_round()
            except Exception as e:
                logger.error(f"❌ Error in liveness loop: {e}", exc_info=True)
            self.stop_event.wait(self.interval)

    def run_round(self) -> Optional[LivenessAction]:
        """One probe round; a failed send leaves the state untouched"""
        if not self.enabled:
            return None
        try:
            got_reply = self.probe.send(self.address, self.timeout)
        except ProbeError as e:
            logger.error(f"❌ {e} - skipping this round")
            return None

        previous = self.state
        self.state, action = next_liveness_state(previous, got_reply)

        if action == LivenessAction.PAUSE:
            logger.info(f"Remote {self.host_spec} went down")
            self.on_down()
        elif action == LivenessAction.RESUME:
            logger.info(f"Remote {self.host_spec} came up")
            self.on_up()
        return action
