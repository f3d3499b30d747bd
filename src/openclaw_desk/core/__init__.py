"""Orchestration core: state mirrors, busy lock, toasts and dialogs."""

from .busy import BusyState
from .chats import ChatSessionManager, SendOutcome
from .gateway import GatewayController
from .modal import (
    DeleteChat,
    DeleteProfile,
    ModalStateMachine,
    RenameChat,
    RenameProfile,
    SecretDelete,
    SecretSet,
    SecretShow,
)
from .models_status import ModelsController
from .orchestrator import Orchestrator
from .profiles import ProfileStore
from .settings import SettingsManager
from .toasts import ToastQueue

__all__ = [
    "BusyState",
    "ChatSessionManager",
    "DeleteChat",
    "DeleteProfile",
    "GatewayController",
    "ModalStateMachine",
    "ModelsController",
    "Orchestrator",
    "ProfileStore",
    "RenameChat",
    "RenameProfile",
    "SecretDelete",
    "SecretSet",
    "SecretShow",
    "SendOutcome",
    "SettingsManager",
    "ToastQueue",
]
