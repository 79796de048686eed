# app/domain/fit.py
from dataclasses import dataclass
from typing import Optional

from app.domain.errors import InvalidSource
from app.domain.geometry import Rect
from app.domain.models import FitPolicy


@dataclass(frozen=True)
class Placement:
    scale: float
    x: float   # top-left of the scaled image
    y: float


def fit_scale(iw: Optional[float], ih: Optional[float], tw: float, th: float, policy: FitPolicy) -> float:
    """Uniform scale placing an iw×ih image inside a tw×th target.

    ``cover`` fills the target (overflow is clipped elsewhere), ``contain``
    keeps the whole image visible and may leave empty space.
    """
    if not iw or not ih or iw <= 0 or ih <= 0:
        raise InvalidSource(f"Native image size unavailable ({iw}x{ih})")
    sx = tw / iw
    sy = th / ih
    if FitPolicy(policy) is FitPolicy.CONTAIN:
        return min(sx, sy)
    return max(sx, sy)


def place_image(iw: Optional[float], ih: Optional[float], target: Rect, policy: FitPolicy) -> Placement:
    scale = fit_scale(iw, ih, target.width, target.height, policy)
    cx, cy = target.center
    return Placement(scale=scale, x=cx - iw * scale / 2, y=cy - ih * scale / 2)
