"""OpenClaw desktop companion: profiles, chats and gateway control in the terminal."""

__version__ = "0.1.0"
