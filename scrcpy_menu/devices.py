"""Device discovery via adb and mDNS."""

import logging
import socket
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .config import (
    ADB_TIMEOUT, DEVICE_READY_ATTEMPTS, DEVICE_READY_DELAY,
    DISPLAY_NAME_ATTEMPTS, DISPLAY_NAME_DELAY, WIRELESS_SCAN_TIMEOUT,
)
from .models import DeviceRecord, DeviceState

logger = logging.getLogger(__name__)

# Android wireless debugging advertises these over mDNS
WIRELESS_SERVICE_TYPES = {
    "_adb-tls-connect._tcp.local.": "connect",
    "_adb-tls-pairing._tcp.local.": "pairing",
}


@dataclass
class WirelessService:
    name: str
    kind: str
    address: str
    port: int

    @property
    def endpoint(self) -> str:
        return f"{self.address}:{self.port}"


def parse_devices(output: str) -> List[DeviceRecord]:
    """Parse the output of `adb devices -l` into device records."""
    devices = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("*") or line.startswith("List of devices"):
            continue

        parts = line.split()
        if len(parts) < 2:
            continue

        serial, token = parts[0], parts[1]
        model = None
        for part in parts[2:]:
            if part.startswith("model:"):
                model = part[len("model:"):].replace("_", " ") or None

        devices.append(DeviceRecord(
            serial=serial,
            state=DeviceState.parse(token),
            model=model,
            raw_state=token,
        ))
    return devices


class DeviceDirectory:
    """Queries adb for connected devices and runs adb housekeeping commands."""

    def __init__(self, adb_path: str = "adb",
                 runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
                 sleep: Callable[[float], None] = time.sleep):
        self.adb_path = adb_path
        self._run = runner
        self._sleep = sleep

    def _adb(self, *args: str, timeout: float = ADB_TIMEOUT) -> Optional[subprocess.CompletedProcess]:
        cmd = [self.adb_path, *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            return self._run(cmd, capture_output=True,
                             encoding="utf-8", errors="replace",
                             timeout=timeout, check=False)
        except FileNotFoundError:
            logger.error("adb not found at %s", self.adb_path)
        except subprocess.TimeoutExpired:
            logger.warning("adb %s timed out", " ".join(args))
        except OSError as e:
            logger.warning("adb %s failed: %s", " ".join(args), e)
        return None

    def _status(self, *args: str, timeout: float = ADB_TIMEOUT) -> str:
        result = self._adb(*args, timeout=timeout)
        if result is None:
            return f"adb {args[0]} failed"
        text = (result.stdout or "").strip() or (result.stderr or "").strip()
        if result.returncode != 0:
            logger.warning("adb %s exited with %s: %s", " ".join(args), result.returncode, text)
        else:
            logger.info("adb %s: %s", " ".join(args), text)
        return text or f"adb {args[0]} exited with code {result.returncode}"

    def list(self) -> List[DeviceRecord]:
        """List connected devices; an adb failure yields an empty list."""
        result = self._adb("devices", "-l")
        if result is None:
            return []
        if result.returncode != 0:
            logger.warning("adb devices exited with %s", result.returncode)
            return []
        return parse_devices(result.stdout or "")

    def get(self, serial: str) -> Optional[DeviceRecord]:
        for device in self.list():
            if device.serial == serial:
                return device
        return None

    def wait_until_ready(self, serial: str,
                         attempts: int = DEVICE_READY_ATTEMPTS,
                         delay: float = DEVICE_READY_DELAY) -> Optional[DeviceRecord]:
        """Poll until the device is ready; None if it never becomes ready."""
        for attempt in range(1, attempts + 1):
            device = self.get(serial)
            if device and device.is_ready:
                return device

            state = device.state_label if device else "not connected"
            logger.info("Device %s is %s (attempt %d/%d)", serial, state, attempt, attempts)
            if attempt < attempts:
                self._sleep(delay)
        return None

    def display_name(self, serial: str,
                     attempts: int = DISPLAY_NAME_ATTEMPTS,
                     delay: float = DISPLAY_NAME_DELAY) -> str:
        """Human readable label for a serial, including its state if not ready."""
        last_seen = None
        for attempt in range(attempts):
            device = self.get(serial)
            if device:
                last_seen = device
                if device.is_ready:
                    return device.display_name
            if attempt < attempts - 1:
                self._sleep(delay)

        if last_seen:
            return f"{last_seen.display_name} [{last_seen.state_label}]"
        return f"{serial} [disconnected]"

    def connect(self, address: str) -> str:
        return self._status("connect", address)

    def disconnect(self, address: str) -> str:
        return self._status("disconnect", address)

    def pair(self, address: str, code: str) -> str:
        return self._status("pair", address, code, timeout=30)

    def tcpip(self, serial: str, port: int = 5555) -> str:
        return self._status("-s", serial, "tcpip", str(port))

    def kill_server(self) -> str:
        return self._status("kill-server")


def discover_wireless(timeout: float = WIRELESS_SCAN_TIMEOUT) -> List[WirelessService]:
    """Browse mDNS for devices with wireless debugging enabled."""
    from zeroconf import ServiceBrowser, ServiceListener, Zeroconf

    services = []
    seen = set()

    class WirelessListener(ServiceListener):
        def add_service(self, zc: Zeroconf, type_: str, name: str) -> None:
            try:
                info = zc.get_service_info(type_, name)
                if info and info.addresses and info.port:
                    address = socket.inet_ntoa(info.addresses[0])
                    key = (type_, address, info.port)
                    if key in seen:
                        return
                    seen.add(key)

                    services.append(WirelessService(
                        name=name.split(".")[0],
                        kind=WIRELESS_SERVICE_TYPES.get(type_, "connect"),
                        address=address,
                        port=info.port,
                    ))
            except (AttributeError, ValueError, OSError) as e:
                logger.debug("Ignoring mDNS service %s: %s", name, e)

        def remove_service(self, zc: Zeroconf, type_: str, name: str) -> None:
            pass

        def update_service(self, zc: Zeroconf, type_: str, name: str) -> None:
            pass

    try:
        zc = Zeroconf()
    except OSError as e:
        logger.warning("mDNS discovery unavailable: %s", e)
        return []

    try:
        listener = WirelessListener()
        browsers = [ServiceBrowser(zc, service_type, listener)
                    for service_type in WIRELESS_SERVICE_TYPES]
        time.sleep(timeout)
        for browser in browsers:
            browser.cancel()
    finally:
        zc.close()

    services.sort(key=lambda s: (s.kind, s.address, s.port))
    return services
