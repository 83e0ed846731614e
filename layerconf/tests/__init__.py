"""Tests for the layerconf package."""
