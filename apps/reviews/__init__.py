"""Reviews app: ratings and comments for campsites, activities and equipment."""
