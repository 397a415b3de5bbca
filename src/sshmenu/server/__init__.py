"""SSH server module for sshmenu.

Accepts SSH connections with paramiko and runs an independent menu
session for each interactive client.
"""
