"""Composition engine: data, entity, polymorphic and polymorphic entity layers.

This layer depends on stdlib, pydantic, :mod:`polydata.schema` and
:mod:`polydata.errors`. It must never import from cli or output.
"""
