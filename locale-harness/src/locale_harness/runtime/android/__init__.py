"""Android runtime helpers.

Thin wrappers around `adb shell`: a command channel and the locale
controller built on it. They assume an already running emulator or device.
"""
