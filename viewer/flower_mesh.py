"""OpenGL renderer for the animated garden with warm directional lighting."""

import numpy as np

from lotus.config import COLORS, hex_to_rgb

# Lazy import: OpenGL may not be available in headless/test environments
_gl = None


def _import_gl():
    global _gl
    if _gl is None:
        import OpenGL.GL as GL
        _gl = GL
    return _gl


class GardenRenderer:
    """Draws a Garden each frame from its merged mesh buffers.

    Petals move every frame, so geometry is streamed through vertex arrays
    rather than compiled into a display list.
    """

    def __init__(self, garden):
        self.garden = garden

    def init_gl(self):
        """Initialize OpenGL state for rendering (call after context creation)."""
        GL = _import_gl()

        GL.glEnable(GL.GL_DEPTH_TEST)
        GL.glEnable(GL.GL_LIGHTING)
        GL.glEnable(GL.GL_LIGHT0)
        GL.glEnable(GL.GL_LIGHT1)
        GL.glEnable(GL.GL_COLOR_MATERIAL)
        GL.glEnable(GL.GL_NORMALIZE)
        GL.glLightModeli(GL.GL_LIGHT_MODEL_TWO_SIDE, GL.GL_TRUE)

        # Golden sun from upper front-right (w=0 -> directional)
        GL.glLightfv(GL.GL_LIGHT0, GL.GL_POSITION, [3.0, 8.0, 5.0, 0.0])
        GL.glLightfv(GL.GL_LIGHT0, GL.GL_DIFFUSE, [1.0, 0.85, 0.61, 1.0])
        GL.glLightfv(GL.GL_LIGHT0, GL.GL_AMBIENT, [0.6, 0.58, 0.54, 1.0])

        # Warm fill from behind-left
        GL.glLightfv(GL.GL_LIGHT1, GL.GL_POSITION, [-5.0, 3.0, -3.0, 0.0])
        GL.glLightfv(GL.GL_LIGHT1, GL.GL_DIFFUSE, [0.4, 0.28, 0.11, 1.0])

        GL.glColorMaterial(GL.GL_FRONT_AND_BACK, GL.GL_AMBIENT_AND_DIFFUSE)

        r, g, b = hex_to_rgb(COLORS["sky"])
        GL.glClearColor(r, g, b, 1.0)

    def render(self):
        """Draw the garden's current frame."""
        GL = _import_gl()
        vertices, normals, colors, faces = self.garden.mesh_buffers()
        if len(faces) == 0:
            return

        GL.glEnableClientState(GL.GL_VERTEX_ARRAY)
        GL.glEnableClientState(GL.GL_NORMAL_ARRAY)
        GL.glEnableClientState(GL.GL_COLOR_ARRAY)

        GL.glVertexPointer(3, GL.GL_FLOAT, 0, np.ascontiguousarray(vertices))
        GL.glNormalPointer(GL.GL_FLOAT, 0, np.ascontiguousarray(normals))
        GL.glColorPointer(3, GL.GL_FLOAT, 0, np.ascontiguousarray(colors))
        indices = np.ascontiguousarray(faces.astype(np.uint32).ravel())
        GL.glDrawElements(GL.GL_TRIANGLES, len(indices), GL.GL_UNSIGNED_INT, indices)

        GL.glDisableClientState(GL.GL_COLOR_ARRAY)
        GL.glDisableClientState(GL.GL_NORMAL_ARRAY)
        GL.glDisableClientState(GL.GL_VERTEX_ARRAY)
