"""Textual widgets for the OpenClaw desktop companion."""
from __future__ import annotations

from .banner import ErrorBanner
from .chat_panel import ChatPanel
from .dialog import DialogScreen
from .gateway_panel import GatewayPanel
from .models_panel import ModelsPanel
from .profile_sidebar import ProfileSidebar
from .settings_panel import SettingsPanel
from .toast_host import ToastHost

__all__ = [
    "ChatPanel",
    "DialogScreen",
    "ErrorBanner",
    "GatewayPanel",
    "ModelsPanel",
    "ProfileSidebar",
    "SettingsPanel",
    "ToastHost",
]
