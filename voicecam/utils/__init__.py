"""
Utility modules for the voice camera.

Contains configuration management and voice command routing.
"""

from .config import Config
from .command_router import CommandRouter, VoiceCommand

__all__ = ["Config", "CommandRouter", "VoiceCommand"]
