# ambient_glow/app.py - Ambient Glow daemon
"""
Ambient Glow - fades a light in around sunset and out around sunrise,
pausing while a monitored host is unreachable
"""
import os
import sys
import atexit
import signal
import logging
import argparse
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from flask import Flask
from flask_cors import CORS

from ambient_glow import config
from ambient_glow.api import create_api_routes
from ambient_glow.devices import DeviceManager
from ambient_glow.errors import AmbientGlowError, ConfigError
from ambient_glow.solar import SolarClock
from ambient_glow.services import (
    SettingsService, BrightnessService, TransitionScheduler, TransitionConfig,
    PauseController, LivenessMonitor,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AmbientGlow:
    """Owns the run state and wires the services together"""

    def __init__(self, settings_service: SettingsService,
                 device_manager: Optional[DeviceManager] = None,
                 solar_clock=None, probe=None,
                 clock: Callable[[], datetime] = utcnow,
                 quick_fade_settle: float = config.QUICK_FADE_SETTLE_DELAY,
                 quick_fade_step: float = config.QUICK_FADE_STEP_DELAY):
        self.settings_service = settings_service
        settings = settings_service.get_settings()

        # Process-wide stop token, set once and never cleared
        self.stop_event = threading.Event()
        self.exit_code = 0
        self._clock = clock

        try:
            self.transition = TransitionConfig(settings["transition_seconds"])
        except ValueError as e:
            raise ConfigError(str(e)) from e

        self.device_manager = device_manager or DeviceManager(
            backend=settings["backend"],
            light_pin=settings["light_pin"],
            chip_path=settings["chip_path"],
            pwm_chip=settings["pwm_chip"],
            pwm_channel=settings["pwm_channel"],
        )
        self.brightness_service = BrightnessService(
            self.device_manager,
            max_failures=settings["max_driver_failures"],
            on_fatal=self._on_driver_lost,
        )
        self.pause_controller = PauseController(
            self.brightness_service,
            settle_delay=quick_fade_settle,
            step_delay=quick_fade_step,
        )
        self.scheduler = TransitionScheduler(
            self.transition, settings_service, solar_clock or SolarClock(), self.brightness_service
        )
        self.liveness_monitor = LivenessMonitor(
            settings["ping_host"],
            on_down=self.pause_controller.pause,
            on_up=self.pause_controller.resume,
            stop_event=self.stop_event,
            probe=probe,
            interval=float(settings["ping_interval"]),
            timeout=float(settings["ping_timeout"]),
        )

    # ========== LIFECYCLE ==========

    def setup(self) -> None:
        """Startup sequence, any AmbientGlowError here is fatal"""
        self.brightness_service.initialize(0)
        self.brightness_service.start()

        coordinates = self.settings_service.coordinates
        logger.info(f"Transition time in seconds: {self.transition.transition_seconds}, "
                    f"Sleep duration: {self.transition.sleep_interval:.04f}")
        logger.info(f"Latitude: {coordinates.latitude:f}, Longitude: {coordinates.longitude:f}")
        self.scheduler.initialize(self._clock())

        # Liveness checks just before the main loop
        self.liveness_monitor.start()

    def run(self) -> None:
        """Main loop, returns once the stop token is set"""
        logger.info("🔄 Main loop started")
        while not self.stop_event.is_set():
            if self.stop_event.wait(self.transition.sleep_interval):
                break
            if self.pause_controller.is_paused:
                continue
            self.tick()
        logger.info("🛑 Main loop stopped")

    def tick(self) -> None:
        try:
            self.scheduler.tick(self._clock())
        except Exception as e:
            logger.error(f"❌ Error in scheduler tick: {e}", exc_info=True)

    def stop(self) -> None:
        self.stop_event.set()

    def shutdown(self) -> None:
        """Stop workers, switch the light off"""
        self.stop()
        self.liveness_monitor.join(timeout=2)
        self.brightness_service.stop()
        self.device_manager.cleanup()

    def reload(self) -> None:
        logger.info("Partially reloading config (only lat/long)...")
        try:
            self.settings_service.reload_coordinates()
        except ConfigError as e:
            logger.error(f"❌ Reload failed, keeping previous coordinates: {e}")

    def _on_driver_lost(self) -> None:
        logger.critical("Could not set the light, stopping")
        self.exit_code = 1
        self.stop()


# ========== FLASK APP ==========

def create_app(daemon: AmbientGlow) -> Flask:
    app = Flask(__name__)
    CORS(app, resources={
        r"/api/*": {
            "origins": ["*"],
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type"]
        }
    })
    app.register_blueprint(create_api_routes(
        daemon.settings_service,
        daemon.brightness_service,
        daemon.pause_controller,
        daemon.scheduler,
        daemon.liveness_monitor,
    ))
    return app


def start_api(daemon: AmbientGlow, host: str, port: int) -> threading.Thread:
    app = create_app(daemon)
    api_thread = threading.Thread(
        target=app.run,
        kwargs={"host": host, "port": port, "debug": False, "use_reloader": False},
        daemon=True
    )
    api_thread.start()
    logger.info(f"✓ Status API on http://{host}:{port}/api/status")
    return api_thread


# ========== PROCESS PLUMBING ==========

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="ambient-glow",
        description=f"Ambient Glow, version {config.VERSION}"
    )
    parser.add_argument("--pidfile", default="", help="name of the PID file")
    parser.add_argument("--logfile", default="-", help="log to a specified file, - for stdout")
    parser.add_argument("--cfgfile", default=config.DEFAULT_CONFIG_FILE, help="configuration file")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=config.VERSION)
    return parser.parse_args(argv)


def setup_logging(logfile: str = "-", verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    if logfile != "-":
        logging.basicConfig(level=level, format=LOG_FORMAT, filename=logfile, filemode="a")
        logger.info("--------------------------------------------------------")
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stdout)


def write_pid_file(pid_path: str) -> None:
    with open(pid_path, "w") as f:
        f.write(str(os.getpid()))

    def _remove():
        try:
            os.remove(pid_path)
        except FileNotFoundError:
            pass

    # Remove when we exit
    atexit.register(_remove)


def install_signal_handlers(daemon: AmbientGlow) -> None:
    def _stop(signum, frame):
        logger.info("Goodbye!")
        daemon.stop()

    def _reload(signum, frame):
        # Off the signal frame, reload reads the config file under a lock
        threading.Thread(target=daemon.reload, daemon=True).start()

    for name in ("SIGINT", "SIGTERM", "SIGQUIT"):
        if hasattr(signal, name):
            signal.signal(getattr(signal, name), _stop)
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, _reload)


def use_hardware_override(backend: str) -> str:
    """USE_HARDWARE=0 forces the mock backend"""
    use_hardware = os.getenv("USE_HARDWARE")
    if use_hardware is not None and use_hardware.lower() in ["0", "false", "no"]:
        return "mock"
    return backend


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.logfile, args.verbose)
    logger.info(f"Welcome to Ambient Glow version {config.VERSION}")

    try:
        if args.pidfile:
            write_pid_file(args.pidfile)
    except OSError as e:
        logger.critical(f"error creating PID file: {e}")
        return 1

    daemon = None
    try:
        settings_service = SettingsService(args.cfgfile)
        settings = settings_service.get_settings()
        device_manager = DeviceManager(
            backend=use_hardware_override(settings["backend"]),
            light_pin=settings["light_pin"],
            chip_path=settings["chip_path"],
            pwm_chip=settings["pwm_chip"],
            pwm_channel=settings["pwm_channel"],
        )
        daemon = AmbientGlow(settings_service, device_manager=device_manager)
        install_signal_handlers(daemon)
        daemon.setup()
    except AmbientGlowError as e:
        logger.critical(f"❌ {e}")
        if daemon is not None:
            daemon.shutdown()
        return 1

    if settings["api_enabled"]:
        start_api(daemon, settings["api_host"], int(settings["api_port"]))

    try:
        daemon.run()
    finally:
        daemon.shutdown()
    return daemon.exit_code


if __name__ == "__main__":
    sys.exit(main())
