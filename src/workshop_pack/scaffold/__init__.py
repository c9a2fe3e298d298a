"""Scaffold engine: resolve defaults, materialize, mirror, aggregate."""
