"""
dem-bakery: Tiled half-precision elevation chunks for planetary DEMs

Splits large elevation rasters into fixed-size chunks stored as quantised
half-precision fractions, and samples them by pixel or by latitude and
longitude with bilinear interpolation.
"""
