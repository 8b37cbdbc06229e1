# errors.py
"""
Exceptions raised by Ambient Glow

ConfigError and startup DriverError/ProbeError abort the daemon before the main loop.
At runtime DriverError and ProbeError are logged and the tick/round is skipped.
"""


class AmbientGlowError(Exception):
    """Base class for all Ambient Glow errors"""


class ConfigError(AmbientGlowError):
    """Invalid or unreadable configuration"""


class DriverError(AmbientGlowError):
    """Brightness driver could not be initialized or applied"""


class ProbeError(AmbientGlowError):
    """Liveness probe could not be set up or sent"""
