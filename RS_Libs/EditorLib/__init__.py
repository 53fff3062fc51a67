"""
EditorLib - PyQt5 desktop editor

Modules:
    canvas_widget: Image/mask canvas that forwards pointer input to the mask surface
    editor_window: Main window with tools, history controls and the inpainting worker
"""
