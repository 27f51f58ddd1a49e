"""aosp_probe – on-device diagnostic probe for AOSP system internals."""

__version__ = "0.1.0"
