"""
gamepad-motion: gamepad orientation from gyro and accelerometer samples.

Integrates the gyro into an orientation quaternion, corrects drift toward
gravity when the controller is steady, and estimates gyro bias manually or
automatically. Ships a small daemon that reads JSON lines samples and
streams the resulting state.
"""

from gamepad_motion.gamepad import CalibrationMode, GamepadMotion

__version__ = "0.1.0"

__all__ = ["CalibrationMode", "GamepadMotion", "__version__"]
