"""Retrieval stages.

Each stage is a pure function (or strategy object) that takes a
``Raster`` and returns a new ``Raster`` with added bands:

- vegetation_index: NDVI, FVC
- emissivity: LSE (NDVI threshold) or EM (ASTER hybrid)
- radiance: LTOA
- atmospheric_correction: BTS
- temperature: LST, LSTC
- quality: cloud masking and the USGS ST product
"""
