"""Scene storage, traversal and the Scene facade.

Components:
    intersection: Sphere fields, closest-hit traversal and diagnostics
    manager: Scene class with validation, host queries and configuration

Both modules allocate Taichi fields at import time, so nothing is imported
here. Use ``from lightcore.scene.manager import Scene`` after ti.init().
"""
