"""Marketplace backend package.

Organized by feature modules (currently only ``users``) with a thin Flask
controller layer on top of service and repository layers.
"""
