"""Pingo - push-to-talk conversation practice with a realtime speech model."""

__version__ = "0.1.0"
