"""Landsat Land Surface Temperature retrieval.

Retrieves LST from Landsat surface reflectance and raw thermal imagery by
chaining NDVI, fractional vegetation cover, land surface emissivity,
top-of-atmosphere radiance, radiative transfer equation inversion, and
Planck inversion to temperature.
"""

__version__ = "0.1.0"
