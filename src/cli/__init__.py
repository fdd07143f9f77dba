"""CLI tools for ConcertCritic.

- ``python -m src.cli.discover query`` runs one aggregated concert query
  against the local catalog and, optionally, Ticketmaster and setlist.fm.
- ``python -m src.cli.discover artist-setlists <mbid>`` lists archived
  setlists for an artist.

``python -m src.cli`` is a shortcut for ``python -m src.cli.discover``.
"""
