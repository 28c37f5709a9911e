"""Historical electricity prices from Home Assistant as gapless priced intervals."""

from .version import __version__
