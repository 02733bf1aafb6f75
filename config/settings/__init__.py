"""Settings modules: ``base`` plus ``dev``, ``prod`` and ``test`` overrides."""
