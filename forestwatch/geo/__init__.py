"""Map geometry: projection, reference regions and viewport fitting."""
from .projector import (
    GeoBounds,
    RenderBounds,
    Transform,
    bounds_of,
    fit_transform,
    project,
    unproject,
)
from .regions import KENYA_BOUNDS, KENYA_CENTER
from .viewport import FitContext, FitMode, ViewMode, ViewportController
