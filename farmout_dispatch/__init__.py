"""Despacho de ofertas de farmout a conductores externos."""

__version__ = "0.1.0"
