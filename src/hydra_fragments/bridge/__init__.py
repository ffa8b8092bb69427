"""Bridge exports."""

from .fragment_bridge import BridgeError, FragmentBridge

__all__ = ["BridgeError", "FragmentBridge"]
