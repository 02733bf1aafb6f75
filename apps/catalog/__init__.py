"""Catalog app: campsites, activities and rental equipment."""
