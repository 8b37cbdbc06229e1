# ambient_glow/api/routes.py
"""
Flask status API routes
"""
import logging
from flask import Blueprint, jsonify
from typing import TYPE_CHECKING

from ambient_glow.config import VERSION
from ambient_glow.errors import ConfigError

if TYPE_CHECKING:
    from ambient_glow.services import (
        SettingsService, BrightnessService, PauseController, LivenessMonitor, TransitionScheduler
    )

logger = logging.getLogger(__name__)


def create_api_routes(settings_service: 'SettingsService',
                      brightness_service: 'BrightnessService',
                      pause_controller: 'PauseController',
                      scheduler: 'TransitionScheduler',
                      liveness_monitor: 'LivenessMonitor' = None) -> Blueprint:
    """Create API routes with dependency injection"""

    api = Blueprint('api', __name__, url_prefix='/api')

    # ========== STATUS ==========

    @api.route('/status', methods=['GET'])
    def get_status():
        """Current brightness, pause and liveness state"""
        coordinates = settings_service.coordinates
        return jsonify({
            "version": VERSION,
            "brightness": brightness_service.current_level,
            "paused": pause_controller.is_paused,
            "liveness": liveness_monitor.state.value if liveness_monitor else "unknown",
            "liveness_enabled": bool(liveness_monitor and liveness_monitor.enabled),
            "latitude": coordinates.latitude,
            "longitude": coordinates.longitude,
            "transition_seconds": scheduler.transition.transition_seconds,
        })

    @api.route('/schedule', methods=['GET'])
    def get_schedule():
        """Next fade-in / fade-out instants (ISO 8601, UTC)"""
        schedule = scheduler.schedule
        if schedule is None:
            return jsonify({"error": "Schedule not initialized"}), 503
        return jsonify({
            "fade_in_time": schedule.fade_in_time.isoformat(),
            "fade_out_time": schedule.fade_out_time.isoformat(),
        })

    # ========== CONFIG ==========

    @api.route('/reload', methods=['POST'])
    def reload_config():
        """Partial reload (latitude/longitude only)"""
        logger.info("Partially reloading config (only lat/long)...")
        try:
            coordinates = settings_service.reload_coordinates()
        except ConfigError as e:
            logger.error(f"❌ Reload failed: {e}")
            return jsonify({"status": "ERROR", "message": str(e)}), 400
        return jsonify({
            "status": "OK",
            "latitude": coordinates.latitude,
            "longitude": coordinates.longitude,
        })

    return api
