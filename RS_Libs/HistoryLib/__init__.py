"""
HistoryLib - Undo/redo ledger of confirmed edits
"""

from RS_Libs.HistoryLib.edit_history import EditHistory

__all__ = ["EditHistory"]
