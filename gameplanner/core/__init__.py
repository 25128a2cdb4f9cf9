"""Core game plan domain: plays, sections, scouting and allocation."""
