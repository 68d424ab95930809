"""State/store layer.

Holds the latest published value for each labelled series. The
refresher writes it and the scrape endpoint reads it; neither reaches
the other directly.
"""

from weather_exporter.state.store import EntryKey, ValueEntry, ValueStore

__all__ = ["EntryKey", "ValueEntry", "ValueStore"]
