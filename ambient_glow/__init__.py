"""
Ambient Glow - solar-driven ambient light with liveness-gated pause/resume
"""
from ambient_glow.config import VERSION

__version__ = VERSION
