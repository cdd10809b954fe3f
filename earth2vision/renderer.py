"""
Braille terminal renderer for the globe viewer.
Rasterizes the viewer's scene into pixel grids (2x4 pixels per character)
and converts them to colored Rich Text rows.
"""

import math

import numpy as np
from rich.text import Text

from .projection import project_array, to_cartesian_array

BRAILLE_BASE = 0x2800

BRAILLE_WEIGHTS = np.array([
    [0x01, 0x08],
    [0x02, 0x10],
    [0x04, 0x20],
    [0x40, 0x80],
], dtype=np.uint8)

COLOR_LIMB = 'green'
COLOR_OUTLINE = 'white'
COLOR_MAP_FRAME = 'green'
COLOR_MARKER = 'yellow'
LABEL_STYLE = 'bold yellow'
TILE_RGB = (0x00, 0xff, 0x88)
# Low alphas are invisible on a terminal; boost them before mixing with black.
TILE_ALPHA_GAIN = 2.5

LIMB_SAMPLES = 180
MAP_EXTENT_X = 2.0
MAP_EXTENT_Y = 1.0


def draw_segments(grid, x0, y0, x1, y1, value=1):
    """Rasterize many line segments at once into `grid`.

    Each segment is sampled once per pixel along its major axis. Segments
    whose endpoints lie far outside the grid are dropped.
    """
    height, width = grid.shape
    x0 = np.asarray(x0, dtype=np.float64)
    y0 = np.asarray(y0, dtype=np.float64)
    x1 = np.asarray(x1, dtype=np.float64)
    y1 = np.asarray(y1, dtype=np.float64)
    if x0.size == 0:
        return

    margin = 2 * max(width, height)
    keep = (
        (np.minimum(x0, x1) < width + margin) & (np.maximum(x0, x1) > -margin) &
        (np.minimum(y0, y1) < height + margin) & (np.maximum(y0, y1) > -margin) &
        np.isfinite(x0) & np.isfinite(x1) & np.isfinite(y0) & np.isfinite(y1)
    )
    x0, y0, x1, y1 = x0[keep], y0[keep], x1[keep], y1[keep]
    per_segment = np.ndim(value) > 0
    if per_segment:
        value = np.asarray(value)[keep]
    if x0.size == 0:
        return

    dx = x1 - x0
    dy = y1 - y0
    n = (np.maximum(np.abs(dx), np.abs(dy)).astype(np.int64) + 1)
    seg = np.repeat(np.arange(n.size), n)
    starts = np.cumsum(n) - n
    step = np.arange(n.sum()) - np.repeat(starts, n)
    t = step / np.maximum(n - 1, 1)[seg]
    xs = np.rint(x0[seg] + dx[seg] * t).astype(np.int64)
    ys = np.rint(y0[seg] + dy[seg] * t).astype(np.int64)

    inside = (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)
    if per_segment:
        value = value[seg][inside]
    grid[ys[inside], xs[inside]] = value


def draw_polyline(grid, px, py, valid, closed=False, value=1):
    """Draw consecutive point pairs where both ends are valid."""
    px = np.asarray(px)
    py = np.asarray(py)
    valid = np.asarray(valid, dtype=bool)
    if closed and px.size > 1:
        px = np.append(px, px[0])
        py = np.append(py, py[0])
        valid = np.append(valid, valid[0])
    if px.size < 2:
        return
    pair = valid[:-1] & valid[1:]
    draw_segments(grid, px[:-1][pair], py[:-1][pair], px[1:][pair], py[1:][pair], value)


def limb_points(camera_position, samples=LIMB_SAMPLES):
    """World-space silhouette circle of the unit sphere seen from `camera_position`."""
    c = np.asarray(camera_position, dtype=np.float64)
    d = float(np.linalg.norm(c))
    if d <= 1.0:
        return np.zeros((0, 3))
    n = c / d
    helper = np.array([0.0, 1.0, 0.0]) if abs(n[1]) < 0.99 else np.array([1.0, 0.0, 0.0])
    u = np.cross(n, helper)
    u /= np.linalg.norm(u)
    v = np.cross(n, u)
    r = math.sqrt(1.0 - 1.0 / (d * d))
    angles = np.linspace(0.0, 2.0 * np.pi, samples, endpoint=False)
    center = n / d
    return center + r * (np.outer(np.cos(angles), u) + np.outer(np.sin(angles), v))


def _facing(points, camera_position):
    # Points on the sphere surface whose outward normal faces the camera.
    return np.einsum('ij,ij->i', points, camera_position - points) > 0.0


def render_globe_layers(viewer):
    """Rasterize the Globe-mode scene. Returns dict of named pixel grids."""
    width, height = int(viewer.width), int(viewer.height)
    camera = viewer.camera
    cam_pos = camera.world_position()
    limb = np.zeros((height, width), dtype=np.uint8)
    outlines = np.zeros((height, width), dtype=np.uint8)
    tiles = np.zeros((height, width), dtype=np.float32)
    markers = np.zeros((height, width), dtype=np.uint8)

    pts = limb_points(cam_pos)
    if len(pts):
        px, py, front = project_array(pts, camera, width, height)
        draw_polyline(limb, px, py, front, closed=True)

    globe = viewer.globe
    for outline in viewer.outlines:
        local = to_cartesian_array(outline[:, 1], outline[:, 0], globe.radius)
        world = globe.local_to_world(local)
        px, py, front = project_array(world, camera, width, height)
        draw_polyline(outlines, px, py, front & _facing(world, cam_pos))

    tile_list = viewer.tiles.tiles
    if tile_list:
        corners = viewer.tiles.corner_offsets()
        positions = np.array([t.node.position for t in tile_list])
        rotations = np.array([t.node.rotation for t in tile_list])
        opacity = np.array([t.opacity for t in tile_list])
        local = np.einsum("nij,kj->nki", rotations, corners) + positions[:, None, :]
        world = globe.local_to_world(local.reshape(-1, 3))
        centers = globe.local_to_world(positions)
        px, py, front = project_array(world, camera, width, height)
        k = len(corners)
        px, py, front = px.reshape(-1, k), py.reshape(-1, k), front.reshape(-1, k)
        shown = _facing(centers, cam_pos)
        for i in range(k):
            j = (i + 1) % k
            pair = shown & front[:, i] & front[:, j]
            draw_segments(tiles, px[pair, i], py[pair, i], px[pair, j], py[pair, j], opacity[pair])

    for marker in viewer.labels.markers:
        label = marker.label
        if not label.visible or label.screen_position is None:
            continue
        mx, my = int(label.screen_position[0]), int(label.screen_position[1])
        markers[max(my - 1, 0):my + 2, max(mx - 1, 0):mx + 2] = 1

    return {"limb": limb, "outlines": outlines, "tiles": tiles, "markers": markers}


def render_map_layers(viewer):
    """Rasterize the flat Map-mode scene."""
    width, height = int(viewer.width), int(viewer.height)
    camera = viewer.camera
    frame = np.zeros((height, width), dtype=np.uint8)
    outlines = np.zeros((height, width), dtype=np.uint8)

    rect = np.array([
        [-MAP_EXTENT_X, -MAP_EXTENT_Y, 0.0],
        [MAP_EXTENT_X, -MAP_EXTENT_Y, 0.0],
        [MAP_EXTENT_X, MAP_EXTENT_Y, 0.0],
        [-MAP_EXTENT_X, MAP_EXTENT_Y, 0.0],
    ])
    px, py, front = project_array(rect, camera, width, height)
    draw_polyline(frame, px, py, front, closed=True)

    for outline in viewer.outlines:
        lons, lats = outline[:, 0], outline[:, 1]
        plane = np.column_stack([lons / 180.0 * 2.0, -lats / 90.0, np.zeros(len(lons))])
        px, py, front = project_array(plane, camera, width, height)
        valid = front.copy()
        # Break lines that jump across the antimeridian.
        jump = np.abs(np.diff(lons)) > 180.0
        if jump.any():
            px = np.insert(px, np.nonzero(jump)[0] + 1, np.nan)
            py = np.insert(py, np.nonzero(jump)[0] + 1, np.nan)
            valid = np.insert(valid, np.nonzero(jump)[0] + 1, False)
        draw_polyline(outlines, px, py, valid)

    return {"frame": frame, "outlines": outlines}


def _tile_color(alpha):
    a = min(1.0, max(0.0, alpha * TILE_ALPHA_GAIN))
    r, g, b = (int(round(c * a)) for c in TILE_RGB)
    return f"#{r:02x}{g:02x}{b:02x}"


def _blocks(grid, char_h, char_w):
    return grid.reshape(char_h, 4, char_w, 2).transpose(0, 2, 1, 3)


def pixels_to_braille(layers, labels=()):
    """Convert ordered (grid, style) layers to colored braille Text rows.

    `layers` is a list of (grid, style) in priority order; a style of None
    marks an opacity grid whose cell color is derived from its max value.
    `labels` are (char_x, char_y, text) overlays written over the braille.
    """
    pixel_h, pixel_w = layers[0][0].shape
    pad_h = (4 - pixel_h % 4) % 4
    pad_w = (2 - pixel_w % 2) % 2
    if pad_h or pad_w:
        layers = [(np.pad(g, ((0, pad_h), (0, pad_w)), mode='constant'), s) for g, s in layers]
        pixel_h, pixel_w = layers[0][0].shape
    char_h, char_w = pixel_h // 4, pixel_w // 2

    combined = np.zeros((char_h, char_w, 4, 2), dtype=bool)
    styles = np.full((char_h, char_w), None, dtype=object)
    styled = np.zeros((char_h, char_w), dtype=bool)
    for grid, style in layers:
        blocks = _blocks(grid, char_h, char_w)
        on = blocks > 0
        combined |= on
        has = np.any(on, axis=(2, 3)) & ~styled
        styled |= has
        if style is None:
            peak = blocks.max(axis=(2, 3))
            for cy, cx in zip(*np.nonzero(has)):
                styles[cy, cx] = _tile_color(float(peak[cy, cx]))
        else:
            styles[has] = style

    weights = BRAILLE_WEIGHTS.reshape(1, 1, 4, 2).astype(np.uint16)
    codes = BRAILLE_BASE + np.sum(combined * weights, axis=(2, 3))
    chars = np.vectorize(chr, otypes=[object])(codes)

    for char_x, char_y, text in labels:
        if not 0 <= char_y < char_h:
            continue
        for i, ch in enumerate(text):
            x = char_x + i
            if 0 <= x < char_w:
                chars[char_y, x] = ch
                styles[char_y, x] = LABEL_STYLE

    result = []
    for cy in range(char_h):
        row_text = Text()
        current_style = None
        current_chars = []
        for cx in range(char_w):
            style = styles[cy, cx]
            if style == current_style:
                current_chars.append(chars[cy, cx])
            else:
                if current_chars:
                    row_text.append(''.join(current_chars), style=current_style)
                current_chars = [chars[cy, cx]]
                current_style = style
        if current_chars:
            row_text.append(''.join(current_chars), style=current_style)
        result.append(row_text)
    return result


def label_overlays(labels):
    """Pixel-space labels to character-cell overlays."""
    overlays = []
    for label in labels:
        if not label.visible or label.screen_position is None:
            continue
        px, py = label.screen_position
        overlays.append((int(px) // 2 + 1, int(py) // 4, label.name))
    return overlays


def render_viewer(viewer):
    """Render the viewer's current frame to a list of Rich Text rows."""
    if viewer.is_map:
        grids = render_map_layers(viewer)
        layers = [(grids["frame"], COLOR_MAP_FRAME), (grids["outlines"], COLOR_OUTLINE)]
    else:
        grids = render_globe_layers(viewer)
        layers = [
            (grids["markers"], COLOR_MARKER),
            (grids["outlines"], COLOR_OUTLINE),
            (grids["limb"], COLOR_LIMB),
            (grids["tiles"], None),
        ]
    return pixels_to_braille(layers, label_overlays(viewer.visible_labels()))
