"""
Pointer interaction for the page composer.

The composer's drag/resize/rotate handling is a pure function:

    new_state, effects = step(state, event, view)

`state` is an immutable ComposerState, `event` a PointerEvent and `view`
anything with a `scale` attribute and a `page_to_screen(x, y)` method
(normally a PageViewport). The hosting layer translates raw device events
into PointerEvents and applies the returned effects (guide lines,
selection highlight) to its own widgets.
"""

import math
from collections import namedtuple
from dataclasses import dataclass, field, replace

from .config import MIN_ITEM_WIDTH, ROTATE_SNAP_DEGREES, SNAP_TOLERANCE
from .models import OutputPage, PlacedItem

# Interaction modes
DRAG = 'DRAG'
ROTATE = 'ROTATE'
RESIZE_TL = 'RESIZE-TL'
RESIZE_TR = 'RESIZE-TR'
RESIZE_BL = 'RESIZE-BL'
RESIZE_BR = 'RESIZE-BR'
RESIZE_MODES = (RESIZE_TL, RESIZE_TR, RESIZE_BL, RESIZE_BR)
MODES = (DRAG, ROTATE) + RESIZE_MODES

# Pointer event kinds
DOWN = 'down'
MOVE = 'move'
UP = 'up'

# Local-frame sign of the center shift for each resize handle, so that the
# opposite corner stays where it is
_RESIZE_SHIFT = {
    RESIZE_BR: (1, 1),
    RESIZE_TL: (-1, -1),
    RESIZE_TR: (1, -1),
    RESIZE_BL: (-1, 1),
}


class PointerEvent(namedtuple('PointerEvent', ['kind', 'x', 'y', 'item_id', 'mode'])):
    """
    A pointer event in screen coordinates.

    item_id and mode are only meaningful for DOWN events: they name the item
    that was hit and the part of it (body, resize handle, rotate handle).
    """
    __slots__ = ()

    @classmethod
    def down(cls, x, y, item_id, mode=DRAG):
        return cls(DOWN, x, y, item_id, mode)

    @classmethod
    def move(cls, x, y):
        return cls(MOVE, x, y, None, None)

    @classmethod
    def up(cls, x=0.0, y=0.0):
        return cls(UP, x, y, None, None)


Effect = namedtuple('Effect', ['name', 'value'])

Guides = namedtuple('Guides', ['horizontal', 'vertical'])
NO_GUIDES = Guides(False, False)


@dataclass(frozen=True)
class Interaction:
    """Everything captured when a pointer interaction starts"""
    mode: str
    item_id: str
    start_x: float
    start_y: float
    initial: PlacedItem
    screen_center: tuple = (0.0, 0.0)
    start_angle: float = 0.0


@dataclass(frozen=True)
class ComposerState:
    """
    Snapshot of the composer: placed items, selection, the active pointer
    interaction (if any) and the snap guides to display.
    """
    items: tuple = ()
    selected_id: str = None
    active: Interaction = None
    guides: Guides = NO_GUIDES
    page: OutputPage = field(default_factory=OutputPage)

    def find(self, item_id):
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def replace_item(self, item):
        return replace(self, items=tuple(item if i.id == item.id else i for i in self.items))


def snap_rotation(rotation, tolerance=ROTATE_SNAP_DEGREES):
    """Snap an angle in degrees to the nearest multiple of 90 within tolerance"""
    nearest = 90.0 * round(rotation / 90.0)
    if abs(rotation - nearest) < tolerance:
        return nearest
    return rotation


def normalize_rotation(rotation):
    """Map an angle in degrees into [0, 360)"""
    rotation = rotation % 360.0
    return 0.0 if rotation == 360.0 else rotation


def _pointer_angle(x, y, center):
    return math.degrees(math.atan2(y - center[1], x - center[0]))


def drag_item(initial, dx, dy, page, tolerance=SNAP_TOLERANCE):
    """
    Translate an item by (dx, dy) page units, snapping its center to the
    page center independently on each axis.

    Returns:
        tuple: (moved item, Guides) where a guide is True when that axis snapped
    """
    x = initial.x + dx
    y = initial.y + dy
    page_cx, page_cy = page.center

    snap_x = abs(x + initial.width / 2 - page_cx) < tolerance
    if snap_x:
        x = page_cx - initial.width / 2
    snap_y = abs(y + initial.height / 2 - page_cy) < tolerance
    if snap_y:
        y = page_cy - initial.height / 2

    # The vertical guide marks a centered x, the horizontal one a centered y
    return initial.copy(x=x, y=y), Guides(horizontal=snap_y, vertical=snap_x)


def resize_item(initial, mode, dx, dy, min_width=MIN_ITEM_WIDTH):
    """
    Resize an item from one of its corner handles with the aspect ratio locked.

    The pointer delta is rotated into the item's unrotated frame, the width
    follows the local x delta (growing toward the dragged handle), and the
    center moves by half the size change, rotated back to page space, so
    the opposite corner stays pinned.
    """
    if mode not in _RESIZE_SHIFT:
        raise ValueError(f"Unknown resize mode '{mode}'")

    rad = math.radians(initial.rotation)
    cos_r = math.cos(rad)
    sin_r = math.sin(rad)
    local_dx = dx * cos_r + dy * sin_r

    ratio = initial.width / initial.height
    sign_x, sign_y = _RESIZE_SHIFT[mode]

    width = max(min_width, initial.width + sign_x * local_dx)
    height = width / ratio

    shift_x = sign_x * (width - initial.width) / 2
    shift_y = sign_y * (height - initial.height) / 2
    global_x = shift_x * cos_r - shift_y * sin_r
    global_y = shift_x * sin_r + shift_y * cos_r

    cx, cy = initial.center
    cx += global_x
    cy += global_y
    return initial.copy(x=cx - width / 2, y=cy - height / 2, width=width, height=height)


def rotate_item(initial, interaction, x, y):
    """Rotate an item by the pointer's angular travel around its screen center"""
    angle = _pointer_angle(x, y, interaction.screen_center)
    rotation = snap_rotation(initial.rotation + angle - interaction.start_angle)
    return initial.copy(rotation=normalize_rotation(rotation))


def _begin(state, event, view):
    item = state.find(event.item_id)
    if item is None:
        return state, ()
    if event.mode not in MODES:
        raise ValueError(f"Unknown interaction mode '{event.mode}'")

    screen_center = (0.0, 0.0)
    start_angle = 0.0
    if event.mode == ROTATE:
        screen_center = tuple(view.page_to_screen(*item.center))
        start_angle = _pointer_angle(event.x, event.y, screen_center)

    interaction = Interaction(mode=event.mode, item_id=item.id,
                              start_x=event.x, start_y=event.y,
                              initial=item, screen_center=screen_center,
                              start_angle=start_angle)
    new_state = replace(state, selected_id=item.id, active=interaction, guides=NO_GUIDES)
    return new_state, (Effect('selected', item.id),)


def _update(state, event, view):
    interaction = state.active
    if interaction is None:
        return state, ()
    if state.find(interaction.item_id) is None:
        # Item was removed mid-interaction
        return replace(state, active=None, guides=NO_GUIDES), (Effect('guides', NO_GUIDES),)

    initial = interaction.initial
    dx = (event.x - interaction.start_x) / view.scale
    dy = (event.y - interaction.start_y) / view.scale

    effects = []
    guides = NO_GUIDES
    if interaction.mode == DRAG:
        item, guides = drag_item(initial, dx, dy, state.page)
    elif interaction.mode == ROTATE:
        item = rotate_item(initial, interaction, event.x, event.y)
    else:
        item = resize_item(initial, interaction.mode, dx, dy)

    new_state = replace(state.replace_item(item), guides=guides)
    effects.append(Effect('item_changed', item))
    if guides != state.guides:
        effects.append(Effect('guides', guides))
    return new_state, tuple(effects)


def _end(state):
    if state.active is None:
        return state, ()
    effects = (Effect('guides', NO_GUIDES),) if state.guides != NO_GUIDES else ()
    return replace(state, active=None, guides=NO_GUIDES), effects


def step(state, event, view):
    """
    Advance the interaction state machine by one pointer event.

    A DOWN event over an item starts a new interaction (superseding any
    previous one) and selects the item; MOVE events update the active item
    from the geometry captured at DOWN time; UP returns to idle.

    Args:
        state: Current ComposerState
        event: PointerEvent in screen coordinates
        view: Object providing `scale` and `page_to_screen(x, y)`

    Returns:
        tuple: (new ComposerState, tuple of Effect)
    """
    if event.kind == DOWN:
        return _begin(state, event, view)
    if event.kind == MOVE:
        return _update(state, event, view)
    if event.kind == UP:
        return _end(state)
    raise ValueError(f"Unknown pointer event kind '{event.kind}'")
