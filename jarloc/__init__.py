"""JarLoc: AI translation of Minecraft mod and modpack language files."""

__version__ = "0.1.0"
