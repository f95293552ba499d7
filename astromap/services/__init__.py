"""Pure computation: ephemeris, lines, proximity, synastry and transits."""
