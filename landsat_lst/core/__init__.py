"""Core utilities and shared infrastructure.

- config: Retrieval configuration loading and validation
- constants: Named constants, band names, QA bits, scale factors
- exceptions: Custom exception hierarchy
- raster_algebra: Elementwise numpy primitives with NaN as NoData
"""
