"""External concert event providers.

TicketmasterProvider  -- live, on-sale events (Discovery API, 0-indexed pages)
SetlistFmProvider     -- archived setlists (setlist.fm, 1-indexed pages)
"""
