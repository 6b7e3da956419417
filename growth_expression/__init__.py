"""
Growth-Rate Expression Pipeline

Gene-wise moderated linear models of expression on growth rate for the
Brauer (2008) yeast nutrient-limitation dataset, reshaped into tidy tables
for filtering and plotting.
"""

__version__ = "1.0.0"
