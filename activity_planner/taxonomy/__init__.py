"""
Fixed vocabularies: WMO weather codes, terrain classes, activities and labels.
"""
