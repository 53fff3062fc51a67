"""
SessionLib - Editing session orchestration
"""

from RS_Libs.SessionLib.retouch_session import Inpainter, RemovalRequest, RetouchSession

__all__ = ["Inpainter", "RemovalRequest", "RetouchSession"]
