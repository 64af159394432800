"""Graph synchronization engine of the structure editor.

Import from the submodules, or from :mod:`prompttree` for the public API.
"""
