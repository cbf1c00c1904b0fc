"""Offline stages that build, embed and translate the category catalog."""
