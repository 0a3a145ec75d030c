"""Readers for boardview file formats describing PCB parts, pins, nails and outlines."""

__version__ = "0.1.0"