"""
Thin-lens HMD optics, off-axis projections and frustum reconstruction.

Pure numpy; nothing here holds references to a renderer.
"""
