"""Notification delivery subsystem of the library-management backend."""
