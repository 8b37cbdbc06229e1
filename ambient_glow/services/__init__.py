from .settings_service import SettingsService, Coordinates
from .brightness_service import BrightnessService
from .transition_service import TransitionScheduler, TransitionConfig, FadeSchedule
from .pause_service import PauseController
from .liveness_service import LivenessMonitor, LivenessState

__all__ = [
    "SettingsService", "Coordinates", "BrightnessService", "TransitionScheduler",
    "TransitionConfig", "FadeSchedule", "PauseController", "LivenessMonitor", "LivenessState",
]
