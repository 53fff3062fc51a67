"""
RS_Libs - Retouch Studio Library Modules

This package contains core functionality for the Retouch Studio project,
organized into specialized sub-packages:

- ImagingLib: Image models, image I/O and the surgical compositor
- MaskSurfaceLib: Viewport transform, brush rasterization and the mask surface
- HistoryLib: Linear undo/redo history of confirmed edits
- InpaintingLib: Gemini inpainting client with retry and cooldown policy
- SessionLib: Session orchestration of surface, service, compositor and history
- EditorLib: PyQt5 editor window and canvas widget
"""

__version__ = "0.1.0"
